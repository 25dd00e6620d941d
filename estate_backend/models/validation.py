"""Result and option types for the property validator."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..config import settings
from .property import PROPERTY_STATUSES


@dataclass(frozen=True)
class ValidationIssue:
    """A single field-scoped problem; used for both errors and warnings."""

    field: str
    message: str
    code: str


@dataclass(frozen=True)
class ValidationOutcome:
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, object]:
        return {
            "is_valid": self.is_valid,
            "errors": [asdict(issue) for issue in self.errors],
            "warnings": [asdict(issue) for issue in self.warnings],
        }


@dataclass(frozen=True)
class ValidationOptions:
    """Knobs for :func:`validate_property`.

    ``agent_ids`` is the snapshot of known agent identities. When it is ``None``
    the agent reference is only checked for shape, not for existence.
    """

    require_images: bool = False
    min_price: float = 1
    max_price: float = 1_000_000_000
    allowed_statuses: Tuple[str, ...] = PROPERTY_STATUSES
    strict_mode: bool = False
    agent_ids: Optional[FrozenSet[int]] = None

    @classmethod
    def from_settings(cls, agent_ids: Optional[Iterable[int]] = None, **overrides) -> "ValidationOptions":
        values = {
            "min_price": settings.MIN_PRICE,
            "max_price": settings.MAX_PRICE,
            "strict_mode": settings.STRICT_VALIDATION,
        }
        values.update(overrides)
        if agent_ids is not None:
            values["agent_ids"] = frozenset(agent_ids)
        return cls(**values)


__all__ = ["ValidationIssue", "ValidationOutcome", "ValidationOptions"]
