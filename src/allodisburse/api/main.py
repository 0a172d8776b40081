import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from allodisburse.api.disbursements import router as disbursements_router
from allodisburse.api.pools import router as pools_router
from allodisburse.container import Container
from allodisburse.exceptions import DisbursementError, PoolNotFoundError

logger = logging.getLogger("allodisburse.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = Container()
    app.state.container = container
    yield
    await container.http_client().close()


app = FastAPI(title="Allo Disburse", version="0.1.0", lifespan=lifespan)


@app.exception_handler(DisbursementError)
async def disbursement_exception_handler(request: Request, exc: DisbursementError):
    if isinstance(exc, PoolNotFoundError):
        status = 404
    elif exc.retryable:
        status = 503
    else:
        status = 400
    logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": str(exc), "retryable": exc.retryable})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled error on %s %s:\n%s", request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"detail": str(exc)})


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(disbursements_router)
app.include_router(pools_router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}
