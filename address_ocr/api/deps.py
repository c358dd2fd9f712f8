from __future__ import annotations

import uuid

from fastapi import Depends, HTTPException, Request

from address_ocr.core.config import settings
from address_ocr.core.errors import SessionNotFoundError
from address_ocr.ocr.factory import get_ocr_engine
from address_ocr.pipeline.pipeline import SessionPipeline
from address_ocr.session.state import Session, SessionStore


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_pipeline(request: Request) -> SessionPipeline:
    return SessionPipeline(
        get_ocr_engine,
        request.app.state.geocoder,
        label_prefix=settings.feature_label_prefix,
    )


def get_current_session(
    session_id: uuid.UUID,
    store: SessionStore = Depends(get_session_store),
) -> Session:
    try:
        return store.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found") from None
