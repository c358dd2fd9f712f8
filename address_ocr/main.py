from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from address_ocr.api.routes import router as api_router
from address_ocr.core.config import settings
from address_ocr.core.logging import configure_logging
from address_ocr.geocoding.batch import Geocoder
from address_ocr.geocoding.nominatim import NominatimGeocoder
from address_ocr.session.state import SessionStore
from address_ocr.ui.routes import router as ui_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    aclose = getattr(app.state.geocoder, "aclose", None)
    if aclose is not None:
        await aclose()
    logger.info("app_shutdown", extra={"sessions": len(app.state.session_store)})


def create_app(geocoder: Geocoder | None = None) -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(title="Address OCR", version="0.1.0", lifespan=lifespan)

    # Process-wide state: sessions live in memory, one geocoder throttles all lookups
    app.state.session_store = SessionStore(ttl=settings.session_ttl, max_sessions=settings.session_max)
    app.state.geocoder = geocoder or NominatimGeocoder.from_settings(settings)

    app.include_router(api_router)
    app.include_router(ui_router)

    logger.info(
        "app_created", extra={"app_env": settings.app_env, "ocr_provider": settings.ocr_provider}
    )
    return app


app = create_app()
