"""Runtime settings for the estate backend, read from the environment."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

ROOT_DIR = Path(__file__).resolve().parents[1]

load_dotenv(dotenv_path=ROOT_DIR / ".env", override=False)


class Settings(BaseModel):
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    DATA_DIR: str = os.getenv("DATA_DIR", str(ROOT_DIR / "data"))

    # Validation defaults
    MIN_PRICE: float = float(os.getenv("MIN_PRICE", "1"))
    MAX_PRICE: float = float(os.getenv("MAX_PRICE", "1000000000"))
    STRICT_VALIDATION: bool = os.getenv("STRICT_VALIDATION", "false").lower() == "true"

    # HTTP surface
    MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(20 * 1024 * 1024)))
    EXPORT_FILENAME: str = os.getenv("EXPORT_FILENAME", "properties.csv")


settings = Settings()
