"""Pre-flight review of a validated batch against a pool."""

from allodisburse.domain.models.distribution import DistributionReview
from allodisburse.domain.models.ingest import ValidatedRow
from allodisburse.domain.models.pool import PoolView
from allodisburse.ingest.csv_ingestor import calculate_total_amount, validate_unique_addresses
from allodisburse.utils.amounts import format_amount


def review_distribution(
    pool: PoolView, valid_rows: list[ValidatedRow], approvals: dict[str, bool],
) -> DistributionReview:
    """Pure check: unique addresses, every recipient approved, total within the pool's funds.

    A pool whose token or available balance could not be read never proceeds:
    the amounts it would be checked against are placeholders.

    ``approvals`` is the result of ``RecipientDirectory.validate_against_pool``;
    an address missing from it counts as unapproved.
    """
    approved = {addr.lower() for addr, ok in approvals.items() if ok}
    unapproved = [r.checksummed_address for r in valid_rows if r.checksummed_address.lower() not in approved]
    unique = validate_unique_addresses(valid_rows)
    total = calculate_total_amount(valid_rows)
    within = total <= pool.available_amount

    issues = []
    if not valid_rows:
        issues.append("No valid recipients")
    if not unique:
        issues.append("Remove duplicate addresses")
    if unapproved:
        issues.append(f"{len(unapproved)} recipients are not approved in the pool")
    if "token" in pool.degraded_fields:
        issues.append("Pool token could not be read; amounts cannot be checked")
    if "available_amount" in pool.degraded_fields:
        issues.append("Pool balance could not be read")
    if not within:
        issues.append(
            f"Total {format_amount(total, pool.token)} exceeds available "
            f"{format_amount(pool.available_amount, pool.token)}"
        )

    return DistributionReview(
        total_recipients=len(valid_rows),
        approved_count=len(valid_rows) - len(unapproved),
        unapproved_addresses=unapproved,
        has_unique_addresses=unique,
        total_amount=total,
        available_amount=pool.available_amount,
        within_available=within,
        can_proceed=not issues,
        issues=issues,
    )
