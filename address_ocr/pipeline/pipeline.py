"""Session pipeline — image acquisition → recognition → address export.

Each step reads and writes an explicit ``Session``:

- ``acquire_image`` writes ``session.image``
- ``recognize`` reads ``session.image``, writes ``session.text`` and holds
  ``session.busy`` for the duration of the OCR call
- ``export`` reads ``session.text`` only
"""
from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable

from address_ocr.core.errors import NoRecognizedTextError, RecognitionError, SessionBusyError
from address_ocr.export.geojson import ExportReport, build_export
from address_ocr.geocoding.batch import Geocoder
from address_ocr.ocr.base_ocr import OCREngine
from address_ocr.session.state import Session, UploadedImage, encode_data_uri

logger = logging.getLogger(__name__)

IMAGE_CONTENT_TYPE = re.compile(r"image/[a-z0-9][a-z0-9.+-]*")


class SessionPipeline:
    def __init__(
        self,
        ocr_engine_factory: Callable[[], OCREngine],
        geocoder: Geocoder,
        *,
        label_prefix: str = "destination",
    ) -> None:
        self._ocr_engine_factory = ocr_engine_factory
        self._geocoder = geocoder
        self._label_prefix = label_prefix

    # ------------------------------------------------------------------ #
    #  Step 1: image acquisition                                          #
    # ------------------------------------------------------------------ #

    def acquire_image(
        self,
        session: Session,
        *,
        filename: str | None,
        content_type: str | None,
        content: bytes | None,
    ) -> Session:
        """Store the uploaded file on the session as a data URI.

        No file selected is a no-op. Raises ValueError for non-image uploads.
        """
        if not filename or content is None:
            return session

        raw_type = content_type or "application/octet-stream"
        # parameters are dropped; the data URI carries the bare type only
        content_type = raw_type.split(";", 1)[0].strip().lower()
        if not IMAGE_CONTENT_TYPE.fullmatch(content_type):
            raise ValueError(f"Unsupported content_type={raw_type!r}")

        session.image = UploadedImage(
            filename=filename,
            content_type=content_type,
            data_uri=encode_data_uri(content, content_type),
        )
        logger.info(
            "image_acquired",
            extra={"session_id": str(session.id), "upload_filename": filename, "bytes": len(content)},
        )
        return session

    # ------------------------------------------------------------------ #
    #  Step 2: text recognition                                           #
    # ------------------------------------------------------------------ #

    async def recognize(self, session: Session) -> Session:
        """Run OCR on the session image and replace ``session.text``.

        No image is a no-op. The busy flag is cleared and the engine closed
        whether or not recognition succeeds.
        """
        if session.image is None:
            return session
        if session.busy:
            raise SessionBusyError(f"Recognition already running for session {session.id}")

        session.busy = True
        t0 = time.monotonic()
        try:
            engine = self._ocr_engine_factory()
            try:
                result = await engine.extract_text(session.image.to_bytes())
            finally:
                await engine.close()
        except Exception as exc:
            logger.exception("ocr_failed", extra={"session_id": str(session.id)})
            raise RecognitionError(str(exc) or type(exc).__name__) from exc
        finally:
            session.busy = False

        session.text = result.text
        logger.info(
            "ocr_complete",
            extra={
                "session_id": str(session.id),
                "chars": len(result.text),
                "confidence": result.confidence,
                "duration_ms": int((time.monotonic() - t0) * 1000),
            },
        )
        return session

    # ------------------------------------------------------------------ #
    #  Step 3: geocoding + export                                         #
    # ------------------------------------------------------------------ #

    async def export(self, session: Session) -> ExportReport:
        if session.text is None:
            raise NoRecognizedTextError(f"No recognized text in session {session.id}")

        t0 = time.monotonic()
        report = await build_export(session.text, self._geocoder, label_prefix=self._label_prefix)
        logger.info(
            "export_complete",
            extra={
                "session_id": str(session.id),
                "features": len(report.collection),
                "duration_ms": int((time.monotonic() - t0) * 1000),
            },
        )
        return report
