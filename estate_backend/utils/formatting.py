"""Display helpers shared by the import/export and image services."""

from __future__ import annotations

_UNITS = ["Bytes", "KB", "MB", "GB"]


def format_file_size(num_bytes: int) -> str:
    """Format a byte count as ``"1.5 KB"``, keeping at most two decimals."""

    if num_bytes <= 0:
        return "0 Bytes"
    exponent = 0
    while num_bytes >= 1024 ** (exponent + 1) and exponent < len(_UNITS) - 1:
        exponent += 1
    value = round(num_bytes / 1024 ** exponent, 2)
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_UNITS[exponent]}"


__all__ = ["format_file_size"]
