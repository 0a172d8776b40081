"""Schemas for /api/pools endpoints."""

from pydantic import BaseModel

from allodisburse.domain.models import DistributionPreview, DistributionReview, PoolView, ValidationResult


class PoolResponse(BaseModel):
    pool: PoolView
    is_degraded: bool
    formatted_total: str
    formatted_available: str
    explorer_url: str


class PreviewResponse(BaseModel):
    validation: ValidationResult
    review: DistributionReview
    preview: DistributionPreview


class PermissionResponse(BaseModel):
    account: str
    is_pool_manager: bool
