from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlmodel import Session

from halalchain.api.v1 import index
from halalchain.api.v1 import roles
from halalchain.api.v1 import batches
from halalchain.api.v1 import trace
from halalchain.api.v1 import events

from halalchain.core.config import settings
from halalchain.core.exceptions import (
    LedgerError, ledger_error_handler, request_validation_error_handler
)
from halalchain.core.logging import setup_logging
from halalchain.db.core import create_db_and_tables, engine
from halalchain.services.lifecycle import LifecycleEngine

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    with Session(engine) as session:
        LifecycleEngine(session).initialize(settings.admin_address)
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Middlewares
origins = []

if settings.allowed_hosts:
    origins = settings.allowed_hosts.split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(LedgerError, ledger_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_error_handler)

# Register routes
app.include_router(index.router, prefix=settings.api_prefix)
app.include_router(roles.router, prefix=f"{settings.api_prefix}/roles", tags=["Roles"])
app.include_router(batches.router, prefix=f"{settings.api_prefix}/batches", tags=["Batches"])
app.include_router(trace.router, prefix=f"{settings.api_prefix}/trace")
app.include_router(events.router, prefix=f"{settings.api_prefix}/events", tags=["Notifications"])

# Static files serving
app.mount("/static", StaticFiles(directory=settings.static_dir), name="static")

if __name__ == "__main__":
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        log_level=None,
    )
