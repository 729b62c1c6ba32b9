import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.db.database import engine, SessionLocal
from app.db.base_class import Base
from app.db.models import *  # noqa: F401,F403  (register tables on Base)
from app.services.errors import MembershipError
from app.utils.init_db import init_db

from app.routers.auth import router as auth_router
from app.routers.groups import router as groups_router

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup / shutdown handler.

    • Create tables.
    • Make sure a site administrator exists.
    """
    Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        init_db(db)

    logger.info("Application startup")
    yield
    logger.info("Application shutdown")


def create_app() -> FastAPI:
    app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------ #
    # Error mapping                                                      #
    # ------------------------------------------------------------------ #
    @app.exception_handler(MembershipError)
    async def membership_error_handler(request: Request, exc: MembershipError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        if settings.is_production:
            return JSONResponse(status_code=500, content={"detail": "Internal server error"})
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    # ------------------------------------------------------------------ #
    # Health check                                                       #
    # ------------------------------------------------------------------ #
    @app.get("/ping")
    async def ping():
        return {"message": "pong"}

    # ------------------------------------------------------------------ #
    # Routers                                                            #
    # ------------------------------------------------------------------ #
    app.include_router(auth_router, prefix="/auth", tags=["auth"])
    app.include_router(groups_router, tags=["groups"])

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="127.0.0.1", port=8000, reload=True)
