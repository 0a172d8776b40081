"""Disbursements API -- CSV template download and stateless CSV validation."""

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import PlainTextResponse

from allodisburse.api.deps import read_csv_upload
from allodisburse.domain.models import ValidationResult
from allodisburse.ingest.csv_ingestor import generate_csv_template, parse_and_validate

router = APIRouter(prefix="/api/disbursements", tags=["disbursements"])


@router.get("/template", response_class=PlainTextResponse)
async def download_template() -> PlainTextResponse:
    return PlainTextResponse(
        generate_csv_template(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="disbursement_template.csv"'},
    )


@router.post("/validate", response_model=ValidationResult)
async def validate_csv(
    file: UploadFile = File(...),
    token_decimals: int = Form(18, ge=0, le=18),
) -> ValidationResult:
    """Validate every row of an uploaded recipients CSV. Bad rows are reported, never fatal."""
    text = await read_csv_upload(file)
    return parse_and_validate(text, token_decimals)
