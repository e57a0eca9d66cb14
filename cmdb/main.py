
from __future__ import annotations
from dotenv import load_dotenv
load_dotenv(dotenv_path=".env")


from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import SQLModel

from cmdb import config
from cmdb.db import engine
from cmdb.logging_config import setup_logging
from cmdb.repository import BackendError, RecordNotFound

from cmdb.activity_api import router as activity_router
from cmdb.dashboard_api import router as dashboard_router
from cmdb.incidents_api import router as incidents_router
from cmdb.items_api import router as items_router
from cmdb.relationships import router as relationships_router
from cmdb.reports_api import router as reports_router
from cmdb.settings_api import router as settings_router
from cmdb.users_api import router as users_router

# ----------------------------
# App + DB init
# ----------------------------

app = FastAPI(
    title="CMDB Dashboard Service",
    version="0.3.0",
    description="Configuration items, incidents, users and automation triggers for the CMDB dashboard.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(dashboard_router)
app.include_router(items_router)
app.include_router(incidents_router)
app.include_router(users_router)
app.include_router(settings_router)
app.include_router(reports_router)
app.include_router(relationships_router)
app.include_router(activity_router)


@app.on_event("startup")
def on_startup() -> None:
    setup_logging("api", level=config.log_level(), log_file=config.log_file())
    SQLModel.metadata.create_all(engine)


# ----------------------------
# Error mapping
# ----------------------------

@app.exception_handler(RecordNotFound)
def record_not_found(request: Request, exc: RecordNotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(BackendError)
def backend_error(request: Request, exc: BackendError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"detail": f"Backend error: {exc.message}"})


@app.get("/health")
def health() -> dict:
    return {"ok": True}
