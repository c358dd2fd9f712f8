from __future__ import annotations

import uuid


class AddressOCRError(Exception):
    """Base class for errors raised by the address OCR pipeline."""


class RecognitionError(AddressOCRError):
    """The OCR engine failed to recognize the current image."""


class GeocodingError(AddressOCRError):
    """A single geocoding lookup failed (network, HTTP status or payload)."""

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"Geocoding failed for {address!r}: {reason}")
        self.address = address
        self.reason = reason


class SessionNotFoundError(AddressOCRError):
    def __init__(self, session_id: uuid.UUID) -> None:
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class SessionBusyError(AddressOCRError):
    """Recognition is already running for this session."""


class NoRecognizedTextError(AddressOCRError):
    """Export was requested before any text was recognized."""
