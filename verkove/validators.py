"""
Validators for catalog entries, uploads, orders and status changes.

Each returns an (is_valid, errors) tuple. Callers decide whether a
failure is fatal: the store raises InvalidInputError, the seed loader
refuses to start with a broken catalog.
"""
from typing import Any

from verkove.types import Category, ProjectStatus

# Allowed project status transitions. Same-state transitions are no-ops.
STATUS_TRANSITIONS = {
    ProjectStatus.DRAFT.value: {ProjectStatus.MANUFACTURING.value, ProjectStatus.FINAL.value},
    ProjectStatus.MANUFACTURING.value: {ProjectStatus.FINAL.value},
    ProjectStatus.FINAL.value: set(),
}


def validate_upload(content_type: str | None, size: int, limit: int) -> tuple[bool, list[str]]:
    """Validate an uploaded reference image."""
    errors = []
    if not content_type or not content_type.startswith("image/"):
        errors.append(f"Only image files are allowed, got {content_type or 'unknown type'}")
    if size <= 0:
        errors.append("Uploaded file is empty")
    elif size > limit:
        errors.append(f"File too large: {size} bytes (limit {limit})")
    return len(errors) == 0, errors


def validate_base_design(data: Any) -> tuple[bool, list[str]]:
    """Validate a base design draft (catalog seed shape)."""
    errors = []
    if not isinstance(data, dict):
        return False, ["Base design must be a dict"]
    for key in ("name", "description", "image_url"):
        if not data.get(key):
            errors.append(f"Missing {key}")
    if data.get("category") not in {c.value for c in Category}:
        errors.append(f"Unknown category: {data.get('category')}")
    specs = data.get("specifications")
    if specs is not None:
        if not isinstance(specs, dict):
            return False, errors + ["specifications must be a dict"]
        materials = specs.get("materials")
        if not isinstance(materials, list) or not all(isinstance(m, str) for m in materials):
            errors.append("specifications.materials must be a list of strings")
        dims = specs.get("dimensions", {})
        if not isinstance(dims, dict) or set(dims) - {"width", "height", "depth"}:
            errors.append("specifications.dimensions must have width/height/depth only")
        if not isinstance(specs.get("weight", ""), str):
            errors.append("specifications.weight must be a string")
    return len(errors) == 0, errors


def validate_order_specs(data: Any) -> tuple[bool, list[str]]:
    """Validate derived manufacturing specifications."""
    errors = []
    if not isinstance(data, dict):
        return False, ["Order specifications must be a dict"]
    if not data.get("materials"):
        errors.append("No materials specified")
    price = data.get("price", 0)
    if not isinstance(price, (int, float)) or price < 0:
        errors.append(f"Invalid price: {price}")
    for key in ("weight", "finish", "timeline"):
        if not data.get(key):
            errors.append(f"Missing {key}")
    return len(errors) == 0, errors


def validate_status_transition(current: str, target: str) -> tuple[bool, list[str]]:
    """Validate a project status change against the status state machine."""
    if target not in STATUS_TRANSITIONS:
        return False, [f"Unknown project status: {target}"]
    if current == target:
        return True, []
    if target not in STATUS_TRANSITIONS.get(current, set()):
        return False, [f"Cannot move project from {current} to {target}"]
    return True, []


# Registry for dispatch
VALIDATORS = {
    "base_design": validate_base_design,
    "order_specs": validate_order_specs,
}


def validate_entity(kind: str, data: Any) -> tuple[bool, list[str]]:
    """Validate any entity draft by kind. Returns (valid, errors)."""
    validator = VALIDATORS.get(kind)
    if not validator:
        return True, []
    return validator(data)
