from __future__ import annotations

from fastapi import APIRouter, Depends, File, Response, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse

from address_ocr.api.deps import get_current_session, get_pipeline, get_session_store
from address_ocr.api.routes import geojson_download, run_export, run_recognition, run_upload
from address_ocr.core.config import settings
from address_ocr.export.map_links import build_map_links
from address_ocr.pipeline.pipeline import SessionPipeline
from address_ocr.session.state import Session, SessionStore
from address_ocr.ui.page import render_page

router = APIRouter(include_in_schema=False)


def _back_to_page(session: Session) -> RedirectResponse:
    return RedirectResponse(f"/sessions/{session.id}", status_code=303)


@router.get("/")
async def new_page(store: SessionStore = Depends(get_session_store)) -> RedirectResponse:
    return _back_to_page(store.create())


@router.get("/sessions/{session_id}", response_class=HTMLResponse)
async def show_page(session: Session = Depends(get_current_session)) -> HTMLResponse:
    links = build_map_links(session.text or "", settings.map_search_url)
    return HTMLResponse(render_page(session, links))


@router.post("/sessions/{session_id}/image")
async def submit_image(
    session: Session = Depends(get_current_session),
    pipeline: SessionPipeline = Depends(get_pipeline),
    file: UploadFile | None = File(None),
) -> RedirectResponse:
    await run_upload(pipeline, session, file)
    return _back_to_page(session)


@router.post("/sessions/{session_id}/ocr")
async def submit_ocr(
    session: Session = Depends(get_current_session),
    pipeline: SessionPipeline = Depends(get_pipeline),
) -> RedirectResponse:
    await run_recognition(pipeline, session)
    return _back_to_page(session)


@router.post("/sessions/{session_id}/geojson")
async def submit_export(
    session: Session = Depends(get_current_session),
    pipeline: SessionPipeline = Depends(get_pipeline),
) -> Response:
    return geojson_download(await run_export(pipeline, session))
