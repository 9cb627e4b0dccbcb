import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from shortener import __version__, database, schemas
from shortener.errors import register_error_handlers
from shortener.service import LinkService

load_dotenv(Path(__file__).parent.parent / ".env")

ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")

# --- Logging ---
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
logger = logging.getLogger("shortener")

ERROR_RESPONSES = {
    400: {"model": schemas.ErrorOut},
    404: {"model": schemas.ErrorOut},
    409: {"model": schemas.ErrorOut},
}


def public_base_url(request: Request) -> str:
    return os.getenv("BASE_URL") or str(request.base_url).rstrip("/")


def get_link_service(request: Request, db=Depends(database.get_db)) -> LinkService:
    return LinkService(db, base_url=public_base_url(request))


router = APIRouter()


# Health check (useful for uptime monitors & load balancers)
@router.get("/healthz", response_model=schemas.HealthOut, include_in_schema=False)
def health(request: Request):
    return {
        "ok": True,
        "version": __version__,
        "timestamp": datetime.now(timezone.utc),
        "uptime": time.monotonic() - request.app.state.started_at,
    }


# ---------- API ----------
@router.post("/api/links", response_model=schemas.LinkCreated, status_code=201, responses=ERROR_RESPONSES)
def create_link(link_in: schemas.LinkCreate, service: LinkService = Depends(get_link_service)):
    return service.create_link(link_in.original_url, link_in.custom_code)


@router.get("/api/links", response_model=list[schemas.LinkOut])
def list_links(service: LinkService = Depends(get_link_service)):
    return service.get_all_links()


@router.get("/api/links/{code}", response_model=schemas.LinkOut, responses=ERROR_RESPONSES)
def link_stats(code: str, service: LinkService = Depends(get_link_service)):
    return service.get_link_stats(code)


@router.delete("/api/links/{code}", status_code=204, response_class=Response, responses=ERROR_RESPONSES)
def delete_link(code: str, service: LinkService = Depends(get_link_service)):
    service.delete_link(code)
    return Response(status_code=204)


# Redirect /{code}; registered last so it never shadows the routes above
@router.get("/{code}", include_in_schema=False)
def redirect(code: str, service: LinkService = Depends(get_link_service)):
    return RedirectResponse(url=service.resolve_redirect(code), status_code=302)


def create_app(database_url: str | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = database.create_db_engine(database_url)
        database.init_db(engine)
        app.state.engine = engine
        app.state.SessionLocal = database.create_session_factory(engine)
        app.state.started_at = time.monotonic()
        logger.info("Storage ready (%s, env=%s)", engine.url.render_as_string(hide_password=True), ENVIRONMENT)
        yield
        engine.dispose()
        logger.info("Storage released")

    app = FastAPI(
        title="Short Links",
        description="Shorten URLs, redirect through short codes and count the clicks.",
        version=__version__,
        lifespan=lifespan,
    )

    # --- CORS (allow the dashboard dev server, etc.) ---
    configured = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
    origins = configured or (["*"] if ENVIRONMENT == "dev" else [])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app, debug=ENVIRONMENT == "dev")
    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(
        "shortener.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", 8000)),
        reload=ENVIRONMENT == "dev",
    )
