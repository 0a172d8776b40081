"""Pools API -- read-only pool inspection and distribution preview."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile

from allodisburse.api.deps import (
    get_networks,
    get_orchestrator,
    get_pool_inspector,
    get_recipient_directory,
    read_csv_upload,
)
from allodisburse.api.schemas.pools import PermissionResponse, PoolResponse, PreviewResponse
from allodisburse.distribution.orchestrator import DistributionOrchestrator
from allodisburse.distribution.review import review_distribution
from allodisburse.ingest.csv_ingestor import parse_and_validate
from allodisburse.networks import NetworkRegistry
from allodisburse.pool.inspector import PoolInspector
from allodisburse.recipients.directory import RecipientDirectory
from allodisburse.utils.amounts import format_amount

router = APIRouter(prefix="/api/pools", tags=["pools"])

InspectorDep = Annotated[PoolInspector, Depends(get_pool_inspector)]


@router.get("/{chain_id}/{pool_id}", response_model=PoolResponse)
async def get_pool(
    chain_id: int,
    pool_id: int,
    inspector: InspectorDep,
    networks: NetworkRegistry = Depends(get_networks),
) -> PoolResponse:
    pool = await inspector.get_pool_info(pool_id, chain_id)
    return PoolResponse(
        pool=pool,
        is_degraded=pool.is_degraded,
        formatted_total=format_amount(pool.total_amount, pool.token),
        formatted_available=format_amount(pool.available_amount, pool.token),
        explorer_url=networks.get(chain_id).address_url(pool.strategy.address),
    )


@router.get("/{chain_id}/{pool_id}/managers/{account}", response_model=PermissionResponse)
async def check_manager(chain_id: int, pool_id: int, account: str, inspector: InspectorDep) -> PermissionResponse:
    allowed = await inspector.check_distribution_permission(pool_id, chain_id, account)
    return PermissionResponse(account=account, is_pool_manager=allowed)


@router.post("/{chain_id}/{pool_id}/preview", response_model=PreviewResponse)
async def preview_distribution(
    chain_id: int,
    pool_id: int,
    inspector: InspectorDep,
    file: UploadFile = File(...),
    directory: RecipientDirectory = Depends(get_recipient_directory),
    orchestrator: DistributionOrchestrator = Depends(get_orchestrator),
) -> PreviewResponse:
    """Validate a CSV against a pool and show what a distribution would do. Submits nothing."""
    text = await read_csv_upload(file)
    pool = await inspector.get_pool_info(pool_id, chain_id)
    validation = parse_and_validate(text, pool.token.decimals)

    addresses = [row.checksummed_address for row in validation.valid_rows]
    approvals = {}
    if addresses:
        approvals = await directory.validate_against_pool(pool_id, chain_id, addresses, strategy=pool.strategy)

    return PreviewResponse(
        validation=validation,
        review=review_distribution(pool, validation.valid_rows, approvals),
        preview=orchestrator.prepare_distribution_data(pool.strategy.canonical_identity, validation.valid_rows),
    )
