from __future__ import annotations

from address_ocr.core.config import settings
from address_ocr.ocr.base_ocr import OCREngine
from address_ocr.ocr.mock_ocr import MockOCREngine


def get_ocr_engine() -> OCREngine:
    """Return a new instance of the configured OCR engine.

    OCR_PROVIDER options:
        mock       — fixed sample text (dev/test, no deps required)
        tesseract  — TesseractOCREngine (tesseract binary + jpn/eng data)
        paddleocr  — PaddleOCREngine (pip install "address-ocr[paddle]")
    """
    provider = settings.ocr_provider.lower().strip()

    if provider == "mock":
        return MockOCREngine()

    if provider == "tesseract":
        from address_ocr.ocr.engines import TesseractOCREngine
        return TesseractOCREngine(
            languages=settings.ocr_languages,
            tesseract_cmd=settings.tesseract_cmd,
        )

    if provider == "paddleocr":
        from address_ocr.ocr.engines import PaddleOCREngine
        return PaddleOCREngine(
            lang=settings.paddle_lang,
            use_gpu=settings.paddle_use_gpu,
        )

    raise ValueError(f"Unknown OCR_PROVIDER={settings.ocr_provider!r}")
