from dependency_injector.wiring import Provide, inject
from fastapi import Depends, HTTPException, UploadFile

from allodisburse.container import Container
from allodisburse.distribution.orchestrator import DistributionOrchestrator
from allodisburse.networks import NetworkRegistry
from allodisburse.pool.inspector import PoolInspector
from allodisburse.recipients.directory import RecipientDirectory


@inject
def get_pool_inspector(
    inspector: PoolInspector = Depends(Provide[Container.pool_inspector]),
) -> PoolInspector:
    return inspector


@inject
def get_recipient_directory(
    directory: RecipientDirectory = Depends(Provide[Container.recipient_directory]),
) -> RecipientDirectory:
    return directory


@inject
def get_orchestrator(
    orchestrator: DistributionOrchestrator = Depends(Provide[Container.orchestrator]),
) -> DistributionOrchestrator:
    return orchestrator


async def read_csv_upload(file: UploadFile) -> str:
    """Uploaded CSV as text; 400 unless it is UTF-8."""
    content = await file.read()
    try:
        return content.decode("utf-8-sig")  # handle BOM
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File must be UTF-8 encoded")


@inject
def get_networks(
    networks: NetworkRegistry = Depends(Provide[Container.networks]),
) -> NetworkRegistry:
    return networks
