from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OCRResult:
    text: str
    confidence: float | None = None  # 0.0 to 1.0, None when the engine reports none


class OCREngine:
    async def extract_text(self, image_bytes: bytes) -> OCRResult:
        raise NotImplementedError

    async def close(self) -> None:
        """Release engine resources. Called once after every recognition."""
