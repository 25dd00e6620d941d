"""Field-level validation of property records.

Every rule reports through :class:`ValidationIssue` values: blocking problems go
to ``errors`` and advisory ones to ``warnings``. Nothing here raises for bad
data, so the same rules serve the CSV importer, API payloads and programmatic
callers alike. Issues are emitted in field declaration order, which keeps the
output deterministic for identical input.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel

from ..models.validation import ValidationIssue, ValidationOptions, ValidationOutcome
from ..utils.coerce import format_number

Operation = Literal["create", "update", "delete"]
RecordLike = Union[Mapping[str, Any], BaseModel]

MAX_BEDROOMS_TYPICAL = 20
MAX_BATHROOMS_TYPICAL = 10
MIN_SIZE_TYPICAL = 100
MAX_SIZE_TYPICAL = 50_000
MAX_IMAGES_TYPICAL = 50
MAX_PRICE_PER_SQFT = 10_000


def _as_dict(record: RecordLike) -> Dict[str, Any]:
    if isinstance(record, BaseModel):
        return record.model_dump()
    return dict(record)


def _is_number(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _is_whole(value: Any) -> bool:
    return _is_number(value) and float(value).is_integer()


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _check_text(
    data: Dict[str, Any],
    name: str,
    label: str,
    min_length: int,
    max_length: Optional[int],
    errors: List[ValidationIssue],
) -> None:
    value = data.get(name)
    prefix = name.upper()
    if _is_blank(value):
        errors.append(ValidationIssue(name, f"{label} is required", f"{prefix}_REQUIRED"))
    elif len(value) < min_length:
        errors.append(
            ValidationIssue(
                name, f"{label} must be at least {min_length} characters long", f"{prefix}_TOO_SHORT"
            )
        )
    elif max_length is not None and len(value) > max_length:
        errors.append(
            ValidationIssue(name, f"{label} must be less than {max_length} characters", f"{prefix}_TOO_LONG")
        )


def _check_price(data: Dict[str, Any], opts: ValidationOptions, errors: List[ValidationIssue]) -> None:
    price = data.get("price")
    if price is None:
        errors.append(ValidationIssue("price", "Property price is required", "PRICE_REQUIRED"))
    elif not _is_number(price):
        errors.append(ValidationIssue("price", "Property price must be a valid number", "PRICE_INVALID"))
    elif price < opts.min_price:
        errors.append(
            ValidationIssue("price", f"Property price must be at least {format_number(opts.min_price)}", "PRICE_TOO_LOW")
        )
    elif price > opts.max_price:
        errors.append(
            ValidationIssue("price", f"Property price must be less than {format_number(opts.max_price)}", "PRICE_TOO_HIGH")
        )


def _check_bedrooms(data: Dict[str, Any], errors: List[ValidationIssue], warnings: List[ValidationIssue]) -> None:
    bedrooms = data.get("bedrooms")
    if bedrooms is None:
        errors.append(ValidationIssue("bedrooms", "Number of bedrooms is required", "BEDROOMS_REQUIRED"))
    elif not _is_whole(bedrooms):
        errors.append(ValidationIssue("bedrooms", "Number of bedrooms must be a whole number", "BEDROOMS_INVALID"))
    elif bedrooms < 0:
        errors.append(ValidationIssue("bedrooms", "Number of bedrooms cannot be negative", "BEDROOMS_NEGATIVE"))
    elif bedrooms > MAX_BEDROOMS_TYPICAL:
        warnings.append(
            ValidationIssue(
                "bedrooms", f"Unusually high number of bedrooms (>{MAX_BEDROOMS_TYPICAL})", "BEDROOMS_HIGH"
            )
        )


def _check_bathrooms(data: Dict[str, Any], errors: List[ValidationIssue], warnings: List[ValidationIssue]) -> None:
    bathrooms = data.get("bathrooms")
    if bathrooms is None:
        errors.append(ValidationIssue("bathrooms", "Number of bathrooms is required", "BATHROOMS_REQUIRED"))
    elif not _is_number(bathrooms):
        errors.append(ValidationIssue("bathrooms", "Number of bathrooms must be a number", "BATHROOMS_INVALID"))
    elif bathrooms < 0:
        errors.append(ValidationIssue("bathrooms", "Number of bathrooms cannot be negative", "BATHROOMS_NEGATIVE"))
    elif bathrooms > MAX_BATHROOMS_TYPICAL:
        warnings.append(
            ValidationIssue(
                "bathrooms", f"Unusually high number of bathrooms (>{MAX_BATHROOMS_TYPICAL})", "BATHROOMS_HIGH"
            )
        )


def _check_size(data: Dict[str, Any], errors: List[ValidationIssue], warnings: List[ValidationIssue]) -> None:
    size = data.get("size")
    if size is None:
        errors.append(ValidationIssue("size", "Property size is required", "SIZE_REQUIRED"))
    elif not _is_whole(size):
        errors.append(ValidationIssue("size", "Property size must be a whole number", "SIZE_INVALID"))
    elif size <= 0:
        errors.append(ValidationIssue("size", "Property size must be greater than 0", "SIZE_ZERO_OR_NEGATIVE"))
    elif size < MIN_SIZE_TYPICAL:
        warnings.append(
            ValidationIssue("size", f"Unusually small property size (<{MIN_SIZE_TYPICAL} sq ft)", "SIZE_SMALL")
        )
    elif size > MAX_SIZE_TYPICAL:
        warnings.append(
            ValidationIssue("size", f"Unusually large property size (>{MAX_SIZE_TYPICAL:,} sq ft)", "SIZE_LARGE")
        )


def _check_status(data: Dict[str, Any], opts: ValidationOptions, errors: List[ValidationIssue]) -> None:
    status = data.get("status")
    if not status:
        errors.append(ValidationIssue("status", "Property status is required", "STATUS_REQUIRED"))
    elif status not in opts.allowed_statuses:
        allowed = ", ".join(opts.allowed_statuses)
        errors.append(ValidationIssue("status", f"Property status must be one of: {allowed}", "STATUS_INVALID"))


def _check_agent(data: Dict[str, Any], opts: ValidationOptions, errors: List[ValidationIssue]) -> None:
    agent_id = data.get("agent_id")
    if agent_id is None:
        errors.append(ValidationIssue("agent_id", "Agent assignment is required", "AGENT_REQUIRED"))
    elif not _is_whole(agent_id):
        errors.append(ValidationIssue("agent_id", "Agent ID must be a valid number", "AGENT_INVALID"))
    elif agent_id <= 0:
        errors.append(ValidationIssue("agent_id", "Agent ID must be a positive number", "AGENT_INVALID_ID"))
    elif opts.agent_ids is not None and int(agent_id) not in opts.agent_ids:
        errors.append(ValidationIssue("agent_id", f"Agent ID {int(agent_id)} does not exist", "AGENT_NOT_FOUND"))


def _check_images(
    data: Dict[str, Any], opts: ValidationOptions, errors: List[ValidationIssue], warnings: List[ValidationIssue]
) -> None:
    images = data.get("images")
    if images is not None and not isinstance(images, (list, tuple)):
        errors.append(ValidationIssue("images", "Property images must be a list", "IMAGES_INVALID"))
        return
    images = images or []
    if opts.require_images and not images:
        errors.append(ValidationIssue("images", "At least one property image is required", "IMAGES_REQUIRED"))
    elif len(images) > MAX_IMAGES_TYPICAL:
        warnings.append(ValidationIssue("images", "Large number of images may affect performance", "IMAGES_MANY"))


def _check_strict(data: Dict[str, Any], warnings: List[ValidationIssue]) -> None:
    bedrooms = data.get("bedrooms")
    bathrooms = data.get("bathrooms")
    if _is_number(bedrooms) and _is_number(bathrooms) and bedrooms and bathrooms > bedrooms * 2:
        warnings.append(
            ValidationIssue("bathrooms", "Unusually high bathroom to bedroom ratio", "BATHROOM_BEDROOM_RATIO")
        )

    price = data.get("price")
    size = data.get("size")
    if _is_number(price) and _is_number(size) and price and size and price / size > MAX_PRICE_PER_SQFT:
        warnings.append(ValidationIssue("price", "Very high price per square foot", "PRICE_PER_SQFT_HIGH"))


def validate_property(record: RecordLike, options: Optional[ValidationOptions] = None) -> ValidationOutcome:
    """Validate a complete property record."""

    opts = options or ValidationOptions()
    data = _as_dict(record)
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []

    _check_text(data, "title", "Property title", 5, 200, errors)
    _check_text(data, "description", "Property description", 10, 2000, errors)
    _check_price(data, opts, errors)
    _check_text(data, "location", "Property location", 2, None, errors)
    _check_text(data, "address", "Property address", 5, None, errors)
    _check_bedrooms(data, errors, warnings)
    _check_bathrooms(data, errors, warnings)
    _check_size(data, errors, warnings)
    _check_status(data, opts, errors)
    _check_agent(data, opts, errors)
    _check_images(data, opts, errors, warnings)
    if opts.strict_mode:
        _check_strict(data, warnings)

    return ValidationOutcome(errors=errors, warnings=warnings)


def _validate_create(data: Dict[str, Any], options: Optional[ValidationOptions]) -> ValidationOutcome:
    return validate_property(data, options)


def _validate_update(data: Dict[str, Any], options: Optional[ValidationOptions]) -> ValidationOutcome:
    # Partial updates are only held to the fields they actually carry.
    base = validate_property(data, options)
    errors = [issue for issue in base.errors if data.get(issue.field) is not None]
    return ValidationOutcome(errors=errors, warnings=list(base.warnings))


def _validate_delete(data: Dict[str, Any], options: Optional[ValidationOptions]) -> ValidationOutcome:
    if not data.get("id"):
        return ValidationOutcome(
            errors=[ValidationIssue("id", "Property ID is required for deletion", "ID_REQUIRED")]
        )
    return ValidationOutcome()


_OPERATIONS: Dict[str, Callable[[Dict[str, Any], Optional[ValidationOptions]], ValidationOutcome]] = {
    "create": _validate_create,
    "update": _validate_update,
    "delete": _validate_delete,
}


def validate_for_operation(
    record: RecordLike, operation: Operation, options: Optional[ValidationOptions] = None
) -> ValidationOutcome:
    """Validate ``record`` the way ``operation`` needs it validated."""

    try:
        handler = _OPERATIONS[operation]
    except KeyError:
        raise ValueError(f"Unknown operation '{operation}'; expected one of {sorted(_OPERATIONS)}") from None
    return handler(_as_dict(record), options)


def format_validation_errors(errors: List[ValidationIssue]) -> str:
    if not errors:
        return ""
    if len(errors) == 1:
        return errors[0].message
    lines = "\n".join(f"• {issue.message}" for issue in errors)
    return f"Multiple validation errors:\n{lines}"


def get_field_errors(errors: List[ValidationIssue], field: str) -> List[ValidationIssue]:
    return [issue for issue in errors if issue.field == field]


def has_field_error(errors: List[ValidationIssue], field: str) -> bool:
    return any(issue.field == field for issue in errors)


__all__ = [
    "Operation",
    "validate_property",
    "validate_for_operation",
    "format_validation_errors",
    "get_field_errors",
    "has_field_error",
]
