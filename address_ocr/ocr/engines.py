"""TesseractOCREngine (default) and PaddleOCREngine for mixed Japanese/English text."""
from __future__ import annotations

import asyncio
import io
import logging

from address_ocr.ocr.base_ocr import OCREngine, OCRResult

logger = logging.getLogger(__name__)


def _load_image(image_bytes: bytes):
    from PIL import Image

    return Image.open(io.BytesIO(image_bytes)).convert("RGB")


# ---------------------------------------------------------------------------
# TesseractOCREngine — pytesseract
# ---------------------------------------------------------------------------

class TesseractOCREngine(OCREngine):
    """OCR engine backed by the Tesseract binary through pytesseract.

    Requires tesseract with the ``jpn`` and ``eng`` traineddata installed.

    Config (via .env):
        OCR_PROVIDER=tesseract
        OCR_LANGUAGES=jpn+eng
        TESSERACT_CMD=/usr/bin/tesseract   # optional
    """

    def __init__(self, languages: str = "jpn+eng", tesseract_cmd: str | None = None) -> None:
        self._languages = languages
        self._tesseract_cmd = tesseract_cmd

    async def extract_text(self, image_bytes: bytes) -> OCRResult:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._recognize, image_bytes)

    def _recognize(self, image_bytes: bytes) -> OCRResult:
        import pytesseract

        if self._tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self._tesseract_cmd

        image = _load_image(image_bytes)
        # Tesseract terminates each page with a form feed
        text = pytesseract.image_to_string(image, lang=self._languages).rstrip("\f")

        logger.info(
            "tesseract_complete",
            extra={"languages": self._languages, "lines": len(text.splitlines())},
        )
        return OCRResult(text=text)


# ---------------------------------------------------------------------------
# PaddleOCREngine — PaddleOCR
# ---------------------------------------------------------------------------

class PaddleOCREngine(OCREngine):
    """OCR engine backed by PaddleOCR (runs locally).

    The ``japan`` recognition model also covers Latin script.

    Install dependency:
        pip install "address-ocr[paddle]"

    Config (via .env):
        OCR_PROVIDER=paddleocr
        PADDLE_LANG=japan
        PADDLE_USE_GPU=false
    """

    def __init__(self, lang: str = "japan", use_gpu: bool = False) -> None:
        self._lang = lang
        self._use_gpu = use_gpu
        self._ocr = None   # lazy-init to avoid import cost at startup

    def _get_ocr(self):
        if self._ocr is None:
            try:
                from paddleocr import PaddleOCR  # type: ignore[import]
            except ModuleNotFoundError as exc:
                raise RuntimeError(
                    "PaddleOCR is not installed. Run: pip install paddlepaddle paddleocr"
                ) from exc
            self._ocr = PaddleOCR(
                lang=self._lang,
                device="gpu" if self._use_gpu else "cpu",
                use_textline_orientation=True,
            )
        return self._ocr

    async def extract_text(self, image_bytes: bytes) -> OCRResult:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._recognize, image_bytes)

    def _recognize(self, image_bytes: bytes) -> OCRResult:
        import numpy as np

        img_array = np.array(_load_image(image_bytes))
        results = self._get_ocr().predict(img_array)

        lines: list[str] = []
        confidences: list[float] = []
        for page in results or []:
            lines.extend(page["rec_texts"])
            confidences.extend(float(score) for score in page["rec_scores"])

        full_text = "\n".join(lines)
        avg_confidence = sum(confidences) / len(confidences) if confidences else 0.0

        logger.info(
            "paddleocr_complete",
            extra={"lines": len(lines), "avg_confidence": round(avg_confidence, 4)},
        )
        return OCRResult(text=full_text, confidence=avg_confidence)

    async def close(self) -> None:
        self._ocr = None
