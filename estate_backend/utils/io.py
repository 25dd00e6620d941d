"""IO helpers for loading CSV snapshots and writing export documents."""

from __future__ import annotations

import os
from functools import lru_cache

import pandas as pd

from ..config import settings
from .logging import get_logger

LOGGER = get_logger("utils.io")


def _resolve(name: str) -> str:
    return name if os.path.isabs(name) else os.path.join(settings.DATA_DIR, name)


@lru_cache(maxsize=16)
def load_csv(name: str) -> pd.DataFrame:
    """Load a CSV by filename from the data directory."""

    path = _resolve(name)
    if not os.path.exists(path):
        raise FileNotFoundError(f"CSV not found: {path}")
    LOGGER.debug("loading_csv path=%s", path)
    return pd.read_csv(path, keep_default_na=False, dtype=str)


def write_export(text: str, path: str) -> str:
    """Write an export document to disk as UTF-8 and return the path written."""

    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as outfile:
        outfile.write(text)
    LOGGER.info("export_written path=%s bytes=%d", path, len(text.encode("utf-8")))
    return path


__all__ = ["load_csv", "write_export"]
