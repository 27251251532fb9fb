"""
Point d'entrée principal de l'API du registre des présences.
Démarrage : uvicorn attendance_tracker.main:app --reload  (depuis backend/)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from attendance_tracker.database import init_db
from attendance_tracker.routers import admin, attendance, dashboard, exports, imports, reference
from attendance_tracker.services.record_store import AttendanceStore
from attendance_tracker.services.storage import KeyValueStorage

logger = logging.getLogger(__name__)

SERVICE_NAME = "Attendance Tracker API"
VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Cycle de vie : crée les tables puis charge le registre une seule fois."""
    init_db()
    store = AttendanceStore(KeyValueStorage())
    store.load()
    app.state.store = store
    yield


app = FastAPI(
    title=SERVICE_NAME,
    description="Registre local des présences (bénévoles, stagiaires, تمهير) : arrivées, départs, import, exports",
    version=VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS : l'interface est servie depuis le poste local uniquement
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Accept"],
    expose_headers=["Content-Disposition"],
)


app.include_router(reference.router)
app.include_router(attendance.router)
app.include_router(dashboard.router)
app.include_router(imports.router)
app.include_router(exports.router)
app.include_router(admin.router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour que la réponse 500 passe
    par CORSMiddleware et ne contienne aucun détail interne.
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "حدث خطأ غير متوقع"},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": SERVICE_NAME, "version": VERSION}
