import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gstbill.api.routes import api_router
from gstbill.api.v1 import v1_router
from gstbill.api.v1.envelope import error
from gstbill.config.settings import settings
from gstbill.core.db import engine
from gstbill.core.logging_config import setup_logging
from gstbill.domain.exceptions import GSTEngineError
from gstbill.infrastructure.db.base import Base

setup_logging()
logger = logging.getLogger("main")

app = FastAPI(title=settings.APP_NAME)


@app.on_event("startup")
async def startup():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@app.exception_handler(GSTEngineError)
async def gst_engine_error_handler(request: Request, exc: GSTEngineError):
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error(exc.message, errors=[exc.to_dict()]),
    )


app.include_router(api_router)
app.include_router(v1_router)
