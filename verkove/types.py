"""
Typed data models for the design studio.

Every entity the store owns is a frozen dataclass; the store replaces
records instead of mutating them, so a record handed to a reader is a
stable snapshot. `to_json()` renders them with the camelCase keys the
web client expects.
"""
from __future__ import annotations
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class Category(str, Enum):
    RINGS = "rings"
    NECKLACES = "necklaces"
    EARRINGS = "earrings"
    BRACELETS = "bracelets"


class SubDesignType(str, Enum):
    ENHANCEMENT = "enhancement"
    MODIFICATION = "modification"


class ProjectStatus(str, Enum):
    DRAFT = "draft"
    FINAL = "final"
    MANUFACTURING = "manufacturing"


class OrderStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    MANUFACTURING = "manufacturing"
    COMPLETED = "completed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Catalog ───────────────────────────────────────────────────

@dataclass(frozen=True)
class Dimensions:
    width: str = ""
    height: str = ""
    depth: str = ""


@dataclass(frozen=True)
class Specifications:
    materials: list[str] = field(default_factory=list)
    dimensions: Dimensions = field(default_factory=Dimensions)
    weight: str = ""


@dataclass(frozen=True)
class BaseDesign:
    id: int
    name: str
    category: str
    description: str
    image_url: str
    specifications: Optional[Specifications] = None


@dataclass(frozen=True)
class SubDesign:
    id: int
    name: str
    type: str
    description: str
    icon_name: str


# ── Project ───────────────────────────────────────────────────

@dataclass(frozen=True)
class DesignData:
    """The latest view of a project: image, prompt and free-form specs."""
    image_url: str = ""
    prompt: str = ""
    specifications: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ChatMessage:
    id: str
    content: str
    is_user: bool
    timestamp: datetime = field(default_factory=utcnow)
    image_url: Optional[str] = None


@dataclass(frozen=True)
class DesignIteration:
    id: str
    image_url: str
    prompt: str  # literal user text, never the enriched directive
    timestamp: datetime = field(default_factory=utcnow)
    ai_response: str = ""


@dataclass(frozen=True)
class ChatContext:
    """Structured context the client sends along with a chat message."""
    base_design_id: Optional[int] = None
    current_design: Optional[DesignData] = None


@dataclass(frozen=True)
class DesignProject:
    id: int
    name: str
    base_design_id: Optional[int] = None
    current_design_data: Optional[DesignData] = None
    chat_history: list[ChatMessage] = field(default_factory=list)
    design_iterations: list[DesignIteration] = field(default_factory=list)
    selected_sub_designs: list[int] = field(default_factory=list)
    status: str = ProjectStatus.DRAFT.value
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


# ── Manufacturing ─────────────────────────────────────────────

@dataclass(frozen=True)
class OrderSpecifications:
    materials: list[str] = field(default_factory=list)
    dimensions: Dimensions = field(default_factory=Dimensions)
    weight: str = ""
    finish: str = ""
    timeline: str = ""
    price: float = 0.0


@dataclass(frozen=True)
class ManufacturingOrder:
    id: int
    project_id: int
    specifications: OrderSpecifications
    status: str = OrderStatus.PENDING.value
    created_at: datetime = field(default_factory=utcnow)


# ── Serialization ─────────────────────────────────────────────

def camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p.capitalize() for p in rest)


def to_json(obj: Any) -> Any:
    """Render dataclasses/enums/datetimes as JSON-ready values with camelCase keys.

    Plain dicts keep their keys: they hold client-supplied payloads.
    """
    if is_dataclass(obj) and not isinstance(obj, type):
        return {camel(f.name): to_json(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {k: to_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [to_json(v) for v in obj]
    return obj
