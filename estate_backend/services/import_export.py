"""CSV export and import of property records.

The document format is comma separated with double-quote escaping: textual
fields are always quoted with embedded quotes doubled, numbers and flags are
written bare. Parsing is tolerant of hand-edited files: each column is looked
up by its export header first and by a camel-style key second.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel

from ..models.property import Agent, ImportedProperty, ImportResult, ImportSummary, InvalidRow, PropertyRecord
from ..models.validation import ValidationOptions
from ..utils.coerce import format_number, to_bool, to_float, to_int, to_str
from ..utils.logging import get_logger
from .validation import validate_property

LOGGER = get_logger("services.import_export")

CSV_HEADERS = [
    "ID",
    "Title",
    "Description",
    "Price",
    "Location",
    "Address",
    "Bedrooms",
    "Bathrooms",
    "Size (sq ft)",
    "Status",
    "Featured",
    "Agent ID",
    "Agent Name",
    "Created At",
    "Image Count",
]

TEMPLATE_HEADERS = [
    "Title",
    "Description",
    "Price",
    "Location",
    "Address",
    "Bedrooms",
    "Bathrooms",
    "Size (sq ft)",
    "Status",
    "Featured",
    "Agent ID",
]

# record field -> (export header, camel-style fallback key)
FIELD_KEYS: Dict[str, Tuple[str, str]] = {
    "title": ("Title", "title"),
    "description": ("Description", "description"),
    "price": ("Price", "price"),
    "location": ("Location", "location"),
    "address": ("Address", "address"),
    "bedrooms": ("Bedrooms", "bedrooms"),
    "bathrooms": ("Bathrooms", "bathrooms"),
    "size": ("Size (sq ft)", "size"),
    "status": ("Status", "status"),
    "featured": ("Featured", "featured"),
    "agent_id": ("Agent ID", "agentId"),
}

PropertyLike = Union[PropertyRecord, Mapping[str, Any]]


def _get(record: PropertyLike, name: str) -> Any:
    if isinstance(record, BaseModel):
        return getattr(record, name, None)
    return record.get(name)


def _quote(value: Any) -> str:
    return '"' + to_str(value).replace('"', '""') + '"'


def _bare(value: Any) -> str:
    return "" if value is None else format_number(value)


def export_properties_to_csv(properties: Sequence[PropertyLike], agents: Sequence[Agent]) -> str:
    """Serialize ``properties`` with a header row, one line per record in input order."""

    agent_names = {agent.id: agent.name for agent in agents}
    rows = [",".join(CSV_HEADERS)]
    for prop in properties:
        agent_id = _get(prop, "agent_id")
        rows.append(
            ",".join(
                [
                    _bare(_get(prop, "id")),
                    _quote(_get(prop, "title")),
                    _quote(_get(prop, "description")),
                    _bare(_get(prop, "price")),
                    _quote(_get(prop, "location")),
                    _quote(_get(prop, "address")),
                    _bare(_get(prop, "bedrooms")),
                    _bare(_get(prop, "bathrooms")),
                    _bare(_get(prop, "size")),
                    _quote(_get(prop, "status")),
                    "Yes" if _get(prop, "featured") else "No",
                    _bare(agent_id),
                    _quote(agent_names.get(agent_id, "Unknown")),
                    to_str(_get(prop, "created_at")),
                    str(len(_get(prop, "images") or [])),
                ]
            )
        )
    LOGGER.info("csv_export rows=%d", len(rows) - 1)
    return "\n".join(rows)


def parse_csv_line(line: str) -> List[str]:
    """Split one CSV line into trimmed fields, honouring quotes and ``""`` escapes."""

    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1
    fields.append("".join(current).strip())
    return fields


def try_field(row: Mapping[str, str], header: str, fallback: str) -> str:
    """Return the value under the export header, else under the fallback key."""
    return row.get(header) or row.get(fallback) or ""


def _parsed_or_raw(text: str, parser) -> Any:
    # Unparseable numbers are passed through as text so the validator flags
    # them as invalid rather than missing.
    if not text.strip():
        return None
    parsed = parser(text)
    return text if parsed is None else parsed


def _coerce_row(row: Mapping[str, str]) -> Dict[str, Any]:
    def text(name: str) -> str:
        header, fallback = FIELD_KEYS[name]
        return try_field(row, header, fallback)

    return {
        "title": text("title"),
        "description": text("description"),
        "price": _parsed_or_raw(text("price"), to_float),
        "location": text("location"),
        "address": text("address"),
        "bedrooms": _parsed_or_raw(text("bedrooms"), to_int),
        "bathrooms": _parsed_or_raw(text("bathrooms"), to_float),
        "size": _parsed_or_raw(text("size"), to_int),
        "status": text("status") or None,
        "featured": to_bool(text("featured")),
        "agent_id": _parsed_or_raw(text("agent_id"), to_int),
    }


def parse_csv_to_properties(
    content: str, agents: Sequence[Agent], options: Optional[ValidationOptions] = None
) -> ImportResult:
    """Parse an import document into accepted properties and per-row diagnostics.

    Never raises for malformed content. A document without a header and at
    least one data line yields an empty, unsuccessful result.
    """

    lines = [line for line in content.split("\n") if line.strip()]
    if len(lines) < 2:
        LOGGER.info("csv_import_empty lines=%d", len(lines))
        return ImportResult()

    opts = replace(
        options or ValidationOptions(),
        require_images=False,
        agent_ids=frozenset(agent.id for agent in agents),
    )
    headers = [header.replace('"', "") for header in parse_csv_line(lines[0])]
    data_lines = lines[1:]

    valid: List[ImportedProperty] = []
    invalid: List[InvalidRow] = []
    for index, line in enumerate(data_lines):
        values = parse_csv_line(line)
        row = {header: (values[i] if i < len(values) else "") for i, header in enumerate(headers)}
        candidate = _coerce_row(row)
        outcome = validate_property(candidate, opts)
        if outcome.is_valid:
            valid.append(ImportedProperty(**candidate))
        else:
            # header is row 1
            row_number = index + 2
            LOGGER.debug("csv_import_rejected row=%d errors=%d", row_number, len(outcome.errors))
            invalid.append(
                InvalidRow(row=row_number, data=row, errors=[issue.message for issue in outcome.errors])
            )

    summary = ImportSummary(total=len(data_lines), valid=len(valid), invalid=len(invalid))
    LOGGER.info("csv_import total=%d valid=%d invalid=%d", summary.total, summary.valid, summary.invalid)
    return ImportResult(
        success=bool(valid),
        valid_properties=valid,
        invalid_rows=invalid,
        summary=summary,
    )


def generate_import_template(agents: Sequence[Agent]) -> str:
    """Header plus one illustrative row showing the expected import shape."""

    sample = [
        "Sample Property Title",
        "Beautiful property with modern amenities",
        "500000",
        "Nairobi",
        "123 Sample Street, Nairobi",
        "3",
        "2",
        "1200",
        "For Sale",
        "No",
        str(agents[0].id) if agents else "1",
    ]
    return "\n".join([",".join(TEMPLATE_HEADERS), ",".join(_quote(value) for value in sample)])


__all__ = [
    "CSV_HEADERS",
    "TEMPLATE_HEADERS",
    "export_properties_to_csv",
    "parse_csv_line",
    "try_field",
    "parse_csv_to_properties",
    "generate_import_template",
]
