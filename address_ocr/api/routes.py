from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile

from address_ocr.api.deps import get_current_session, get_pipeline, get_session_store
from address_ocr.core.config import settings
from address_ocr.core.errors import NoRecognizedTextError, RecognitionError, SessionBusyError
from address_ocr.export.geojson import GEOJSON_MEDIA_TYPE, ExportReport, serialize_feature_collection
from address_ocr.export.map_links import build_map_links
from address_ocr.extraction.addresses import extract_address_lines
from address_ocr.pipeline.pipeline import SessionPipeline
from address_ocr.schemas import (
    AddressLinesOut,
    CoordinateOut,
    ExportReportOut,
    ExportSummaryOut,
    GeocodeOutcomeOut,
    MapLinkOut,
    SessionOut,
)
from address_ocr.session.state import Session, SessionStore

logger = logging.getLogger(__name__)
router = APIRouter()


def session_out(session: Session) -> SessionOut:
    return SessionOut(
        id=session.id,
        has_image=session.has_image,
        image_filename=session.image.filename if session.image else None,
        text=session.text,
        busy=session.busy,
    )


def report_out(report: ExportReport) -> ExportReportOut:
    return ExportReportOut(
        feature_collection=report.collection.to_geojson(),
        outcomes=[
            GeocodeOutcomeOut(
                index=o.index,
                address=o.address,
                status=o.status,
                coordinate=CoordinateOut(lat=o.coordinate.lat, lon=o.coordinate.lon)
                if o.coordinate
                else None,
                reason=o.reason,
            )
            for o in report.outcomes
        ],
        summary=ExportSummaryOut(**report.summary),
    )


def geojson_download(report: ExportReport) -> Response:
    return Response(
        content=serialize_feature_collection(report.collection),
        media_type=GEOJSON_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{settings.export_filename}"'},
    )


async def run_upload(pipeline: SessionPipeline, session: Session, file: UploadFile | None) -> None:
    if file is None or not file.filename:
        return
    content = await file.read()
    try:
        pipeline.acquire_image(
            session, filename=file.filename, content_type=file.content_type, content=content
        )
    except ValueError as exc:
        raise HTTPException(status_code=415, detail=str(exc)) from exc


async def run_recognition(pipeline: SessionPipeline, session: Session) -> None:
    try:
        await pipeline.recognize(session)
    except SessionBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except RecognitionError as exc:
        raise HTTPException(status_code=502, detail=f"Recognition failed: {exc}") from exc


async def run_export(pipeline: SessionPipeline, session: Session) -> ExportReport:
    try:
        return await pipeline.export(session)
    except NoRecognizedTextError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/api/sessions", response_model=SessionOut, status_code=201)
async def create_session(store: SessionStore = Depends(get_session_store)) -> SessionOut:
    return session_out(store.create())


@router.get("/api/sessions/{session_id}", response_model=SessionOut)
async def get_session_state(session: Session = Depends(get_current_session)) -> SessionOut:
    return session_out(session)


@router.delete("/api/sessions/{session_id}", status_code=204)
async def delete_session(
    session_id: uuid.UUID,
    session: Session = Depends(get_current_session),
    store: SessionStore = Depends(get_session_store),
) -> Response:
    store.delete(session_id)
    return Response(status_code=204)


@router.post("/api/sessions/{session_id}/image", response_model=SessionOut)
async def upload_image(
    session: Session = Depends(get_current_session),
    pipeline: SessionPipeline = Depends(get_pipeline),
    file: UploadFile | None = File(None),
) -> SessionOut:
    await run_upload(pipeline, session, file)
    return session_out(session)


@router.post("/api/sessions/{session_id}/ocr", response_model=SessionOut)
async def recognize_text(
    session: Session = Depends(get_current_session),
    pipeline: SessionPipeline = Depends(get_pipeline),
) -> SessionOut:
    await run_recognition(pipeline, session)
    return session_out(session)


@router.get("/api/sessions/{session_id}/addresses", response_model=AddressLinesOut)
async def get_addresses(session: Session = Depends(get_current_session)) -> AddressLinesOut:
    return AddressLinesOut(addresses=extract_address_lines(session.text or ""))


@router.get("/api/sessions/{session_id}/map-links", response_model=list[MapLinkOut])
async def get_map_links(session: Session = Depends(get_current_session)) -> list[MapLinkOut]:
    links = build_map_links(session.text or "", settings.map_search_url)
    return [MapLinkOut(address=link.address, url=link.url) for link in links]


@router.post("/api/sessions/{session_id}/export", response_model=ExportReportOut)
async def export_report(
    session: Session = Depends(get_current_session),
    pipeline: SessionPipeline = Depends(get_pipeline),
) -> ExportReportOut:
    return report_out(await run_export(pipeline, session))


@router.post("/api/sessions/{session_id}/geojson")
async def download_geojson(
    session: Session = Depends(get_current_session),
    pipeline: SessionPipeline = Depends(get_pipeline),
) -> Response:
    return geojson_download(await run_export(pipeline, session))
