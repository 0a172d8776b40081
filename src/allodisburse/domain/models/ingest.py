"""Bulk recipient input types: raw CSV candidates and validated rows."""

from pydantic import BaseModel


class CandidateRow(BaseModel):
    """One untrusted CSV data row."""

    address: str
    amount: str
    profile_id: str | None = None


class ValidatedRow(BaseModel):
    checksummed_address: str
    parsed_amount: int  # base units
    profile_id: str | None = None
    source_row_number: int  # 1-based file line, header is line 1


class RowError(BaseModel):
    row: int  # 0 = whole file unreadable
    error: str


class ValidationResult(BaseModel):
    valid_rows: list[ValidatedRow] = []
    errors: list[RowError] = []
    total_rows: int = 0
