from __future__ import annotations

from address_ocr.ocr.base_ocr import OCRResult, OCREngine


class MockOCREngine(OCREngine):
    def __init__(self) -> None:
        self.closed = False

    async def extract_text(self, image_bytes: bytes) -> OCRResult:
        # Mock OCR for development/testing
        return OCRResult(
            text="お届け先一覧\n東京都千代田区千代田1-1\nTEL 03-1234-5678\n大阪府大阪市北区梅田3-1-1\nThank you",
            confidence=0.85,
        )

    async def close(self) -> None:
        self.closed = True
