from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    # OCR provider: mock | tesseract | paddleocr
    ocr_provider: str = "tesseract"
    ocr_languages: str = "jpn+eng"
    tesseract_cmd: str | None = None
    paddle_lang: str = "japan"
    paddle_use_gpu: bool = False

    # Geocoding (Nominatim search API)
    geocoder_url: str = "https://nominatim.openstreetmap.org/search"
    geocode_user_agent: str = "address-ocr/0.1"
    geocode_timeout: float | None = None
    geocode_max_attempts: int = 1
    geocode_retry_wait: float = 1.0
    geocode_min_interval: float = 0.0

    # Sessions (in memory): idle seconds before expiry, and the most kept at once
    session_ttl: float | None = 3600.0
    session_max: int | None = 1000

    # Export
    map_search_url: str = "https://www.google.com/maps/search/?api=1"
    feature_label_prefix: str = "destination"
    export_filename: str = "destinations.geojson"


settings = Settings()
