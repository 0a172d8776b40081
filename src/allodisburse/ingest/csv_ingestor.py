"""CSV ingestion for bulk disbursements: address,amount[,profileId] per row.

A bad row never fails the batch; it is reported with its 1-based file line
number (header is line 1, so data index i is row i + 2). Only a file the csv
module cannot read, or one without the required headers, yields the single
row-0 error.
"""

import csv
import io
import logging
from decimal import Decimal, DecimalException

from eth_utils import to_checksum_address

from allodisburse.domain.models.ingest import CandidateRow, RowError, ValidatedRow, ValidationResult
from allodisburse.utils.addresses import is_valid_address
from allodisburse.utils.amounts import MAX_UINT256, parse_decimal, to_base_units

logger = logging.getLogger(__name__)

TEMPLATE_HEADER = ("address", "amount", "profileId")
REQUIRED_COLUMNS = {"address", "amount"}

TEMPLATE_ROWS = (
    ("0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed", "100.5", ""),
    ("0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359", "250", ""),
    (
        "0xdbF03B407c01E7cD3CBea99509d93f8DDDC8C6FB",
        "1000",
        "0x0000000000000000000000000000000000000000000000000000000000000001",
    ),
)


def _structural_error(message: str) -> ValidationResult:
    return ValidationResult(valid_rows=[], errors=[RowError(row=0, error=message)], total_rows=0)


def _read_candidates(text: str) -> list[CandidateRow] | str:
    """Return candidate rows, or an error message if the file is structurally broken."""
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    if reader.fieldnames is None:
        return "CSV file is empty or has no header"

    columns = {(name or "").strip().lower(): name for name in reader.fieldnames}
    missing = REQUIRED_COLUMNS - set(columns)
    if missing:
        return f"CSV missing required columns: {', '.join(sorted(missing))}"

    address_key = columns["address"]
    amount_key = columns["amount"]
    profile_key = columns.get("profileid")

    candidates: list[CandidateRow] = []
    for row in reader:
        profile = (row.get(profile_key) or "").strip() if profile_key else ""
        candidates.append(CandidateRow(
            address=(row.get(address_key) or "").strip(),
            amount=(row.get(amount_key) or "").strip(),
            profile_id=profile or None,
        ))
    return candidates


def _to_uint256(value: Decimal, decimals: int) -> int | None:
    """Base units, or None when the amount cannot fit a uint256."""
    if value.adjusted() >= 78:
        return None
    try:
        base_units = to_base_units(value, decimals)
    except DecimalException:
        return None
    return base_units if base_units <= MAX_UINT256 else None


def validate_row(candidate: CandidateRow, row_number: int, token_decimals: int) -> ValidatedRow | RowError:
    if not candidate.address or not candidate.amount:
        return RowError(row=row_number, error="Missing address or amount")

    # Amount first: a row with both fields bad reports the amount
    value = parse_decimal(candidate.amount)
    base_units = _to_uint256(value, token_decimals) if value is not None and value > 0 else None
    if base_units is None:
        return RowError(row=row_number, error=f"Invalid amount: {candidate.amount}")

    # Mixed-case input must match its EIP-55 checksum
    if not is_valid_address(candidate.address):
        return RowError(row=row_number, error=f"Invalid address: {candidate.address}")

    if base_units == 0:
        return RowError(row=row_number, error=f"Amount below smallest unit: {candidate.amount}")

    return ValidatedRow(
        checksummed_address=to_checksum_address(candidate.address),
        parsed_amount=base_units,
        profile_id=candidate.profile_id,
        source_row_number=row_number,
    )


def parse_and_validate(text: str, token_decimals: int = 18) -> ValidationResult:
    """Parse CSV text and validate every row independently."""
    if not 0 <= token_decimals <= 18:
        raise ValueError(f"token_decimals must be in [0, 18], got {token_decimals}")

    try:
        candidates = _read_candidates(text)
    except csv.Error as e:
        logger.warning("Unparsable CSV: %s", e)
        return _structural_error(f"Unparsable CSV: {e}")

    if isinstance(candidates, str):
        return _structural_error(candidates)

    result = ValidationResult(total_rows=len(candidates))
    for idx, candidate in enumerate(candidates):
        outcome = validate_row(candidate, idx + 2, token_decimals)
        if isinstance(outcome, RowError):
            result.errors.append(outcome)
        else:
            result.valid_rows.append(outcome)

    logger.info(
        "CSV validation: %d rows, %d valid, %d errors",
        result.total_rows, len(result.valid_rows), len(result.errors),
    )
    return result


def validate_unique_addresses(rows: list[ValidatedRow]) -> bool:
    """True iff no two rows share an address (case-insensitive)."""
    seen: set[str] = set()
    for row in rows:
        key = row.checksummed_address.lower()
        if key in seen:
            return False
        seen.add(key)
    return True


def find_duplicate_addresses(rows: list[ValidatedRow]) -> list[str]:
    seen: set[str] = set()
    duplicates: list[str] = []
    for row in rows:
        key = row.checksummed_address.lower()
        if key in seen and row.checksummed_address not in duplicates:
            duplicates.append(row.checksummed_address)
        seen.add(key)
    return duplicates


def calculate_total_amount(rows: list[ValidatedRow]) -> int:
    """Exact sum of base-unit amounts."""
    return sum((row.parsed_amount for row in rows), 0)


def generate_csv_template() -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(TEMPLATE_HEADER)
    writer.writerows(TEMPLATE_ROWS)
    return buf.getvalue()
