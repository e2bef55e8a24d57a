import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.auth import router as auth_router
from app.api.leads import router as leads_router
from app.api.punches import router as punches_router
from app.api.stats import router as stats_router
from app.api.tasks import router as tasks_router
from app.api.users import router as users_router
from app.api.work_updates import router as work_updates_router
from app.core.config import settings
from app.db.models import Base
from app.db.session import engine
from app.services.punches import PunchFetchError

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables on startup."""
    logger.info("Ensuring database schema...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready.")

    yield

    await engine.dispose()
    logger.info("Shutting down TeamOps backend.")


app = FastAPI(
    title="TeamOps API",
    description="Punch clock, work updates, tasks, lead uploads and weekly team summaries.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
app.include_router(users_router, prefix="/api/users", tags=["Users"])
app.include_router(punches_router, prefix="/api/punches", tags=["Punches"])
app.include_router(work_updates_router, prefix="/api/work-updates", tags=["Work updates"])
app.include_router(leads_router, prefix="/api/leads", tags=["Leads"])
app.include_router(tasks_router, prefix="/api/tasks", tags=["Tasks"])
app.include_router(stats_router, prefix="/api/stats", tags=["Stats"])


@app.exception_handler(PunchFetchError)
async def punch_fetch_error_handler(request: Request, exc: PunchFetchError) -> JSONResponse:
    logger.error("Punch fetch failed for %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)},
    )


@app.get("/health", tags=["System"])
async def health_check() -> dict:
    return {"status": "ok"}
