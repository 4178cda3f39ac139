"""
Point d'entrée de l'API locale RoleCaller (servie sur l'appareil).
Démarrage : uvicorn rolecaller.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import rolecaller.models  # noqa: F401  enregistre tous les modèles avant create_all()
from rolecaller.config import settings
from rolecaller.dependencies import get_gateway
from rolecaller.errors import RolecallerError
from rolecaller.routers import attendance, classes, schools, students, sync, teachers
from rolecaller.scheduler import start_scheduler, stop_scheduler

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Cycle de vie : crée le schéma du cache local (une seule fois), restaure la
    dernière session, puis démarre/arrête le scheduler APScheduler.
    """
    gateway = app.dependency_overrides.get(get_gateway, get_gateway)()
    gateway.local.init()
    session = gateway.restore_session()
    if session is not None:
        logger.info("Session restaurée : école %s (%s)", session.school.id, session.role)
    if settings.SCHEDULER_ENABLED:
        start_scheduler()
    yield
    stop_scheduler()


app = FastAPI(
    title="RoleCaller API",
    description="API locale de gestion des présences scolaires (offline-first)",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS : l'interface tourne sur l'appareil, seuls les ports localhost sont autorisés.
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


app.include_router(schools.router)
app.include_router(classes.router)
app.include_router(students.router)
app.include_router(attendance.router)
app.include_router(teachers.router)
app.include_router(sync.router)


@app.exception_handler(RolecallerError)
async def rolecaller_exception_handler(request: Request, exc: RolecallerError) -> JSONResponse:
    """Traduit les erreurs typées du cœur en réponses JSON (503 hors-ligne, 404, 401, 409...)."""
    if exc.status_code >= 500 and exc.status_code != 503:
        logger.error("Erreur %s : %s", type(exc).__name__, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour garantir que la réponse 500
    passe bien par CORSMiddleware (qui injecte les headers CORS).
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Une erreur interne est survenue."},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "RoleCaller API", "version": "0.1.0"}
