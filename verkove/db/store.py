"""
Entity store: in-memory keyed collections for the design studio.

Holds base designs, sub designs, design projects and manufacturing
orders for the lifetime of the process. Each kind has its own id
sequence. All mutations of one project run under that project's lock,
so read-modify-write appends (iterations, chat turns) never lose writes
when requests are served concurrently. Reads return frozen snapshots.
"""
import itertools
import threading
from collections import defaultdict
from dataclasses import asdict, replace
from typing import Iterable

from verkove.db.catalog import BASE_DESIGNS, SUB_DESIGNS
from verkove.errors import InvalidInputError, NotFoundError
from verkove.types import (
    BaseDesign, ChatMessage, DesignData, DesignIteration, DesignProject, Dimensions,
    ManufacturingOrder, OrderSpecifications, OrderStatus, ProjectStatus, Specifications,
    SubDesign, SubDesignType, utcnow,
)
from verkove.validators import STATUS_TRANSITIONS, validate_entity, validate_status_transition

PROJECT_FIELDS = {
    "name", "base_design_id", "current_design_data", "chat_history",
    "design_iterations", "selected_sub_designs", "status",
}


def specifications_from_dict(data: dict | None) -> Specifications | None:
    if not data:
        return None
    return Specifications(
        materials=list(data.get("materials", [])),
        dimensions=Dimensions(**data.get("dimensions", {})),
        weight=data.get("weight", ""),
    )


class EntityStore:
    def __init__(self, seed: bool = True):
        self._lock = threading.RLock()
        self._project_locks: dict[int, threading.RLock] = {}
        self._sequences = defaultdict(lambda: itertools.count(1))
        self._base_designs: dict[int, BaseDesign] = {}
        self._sub_designs: dict[int, SubDesign] = {}
        self._projects: dict[int, DesignProject] = {}
        self._orders: dict[int, ManufacturingOrder] = {}
        if seed:
            self.seed_catalog()

    def seed_catalog(self):
        for draft in BASE_DESIGNS:
            self.create_base_design(**draft)
        for draft in SUB_DESIGNS:
            self.create_sub_design(**draft)

    def next_id(self, kind: str) -> int:
        """Next id in the per-kind sequence."""
        with self._lock:
            return next(self._sequences[kind])

    def project_lock(self, project_id: int) -> threading.RLock:
        """Re-entrant lock serializing mutations of one project."""
        with self._lock:
            return self._project_locks.setdefault(project_id, threading.RLock())

    # ── Base designs ──────────────────────────────────────────

    def create_base_design(self, name: str, category: str, description: str,
                           image_url: str, specifications: dict | None = None) -> BaseDesign:
        draft = {"name": name, "category": category, "description": description,
                 "image_url": image_url, "specifications": specifications}
        ok, errors = validate_entity("base_design", draft)
        if not ok:
            raise InvalidInputError(f"Invalid base design: {'; '.join(errors)}")
        design = BaseDesign(
            id=self.next_id("base_design"), name=name, category=category,
            description=description, image_url=image_url,
            specifications=specifications_from_dict(specifications),
        )
        with self._lock:
            self._base_designs[design.id] = design
        return design

    def list_base_designs(self) -> list[BaseDesign]:
        with self._lock:
            return list(self._base_designs.values())

    def list_by_category(self, category: str) -> list[BaseDesign]:
        return [d for d in self.list_base_designs() if d.category == category]

    def get_base_design(self, design_id: int) -> BaseDesign | None:
        with self._lock:
            return self._base_designs.get(design_id)

    # ── Sub designs ───────────────────────────────────────────

    def create_sub_design(self, name: str, type: str, description: str, icon_name: str) -> SubDesign:
        if type not in {t.value for t in SubDesignType}:
            raise InvalidInputError(f"Unknown sub design type: {type}", field="type")
        design = SubDesign(id=self.next_id("sub_design"), name=name, type=type,
                           description=description, icon_name=icon_name)
        with self._lock:
            self._sub_designs[design.id] = design
        return design

    def list_sub_designs(self) -> list[SubDesign]:
        with self._lock:
            return list(self._sub_designs.values())

    def get_sub_design(self, design_id: int) -> SubDesign | None:
        with self._lock:
            return self._sub_designs.get(design_id)

    # ── Projects ──────────────────────────────────────────────

    def create_project(self, name: str, base_design_id: int | None = None,
                       current_design_data: DesignData | None = None,
                       chat_history: Iterable[ChatMessage] = (),
                       design_iterations: Iterable[DesignIteration] = (),
                       selected_sub_designs: Iterable[int] = (),
                       status: str = ProjectStatus.DRAFT.value) -> DesignProject:
        if not name:
            raise InvalidInputError("Project name is required", field="name")
        if status not in {s.value for s in ProjectStatus}:
            raise InvalidInputError(f"Unknown project status: {status}", field="status")
        now = utcnow()
        project = DesignProject(
            id=self.next_id("project"),
            name=name,
            base_design_id=base_design_id,
            current_design_data=current_design_data,
            chat_history=list(chat_history),
            design_iterations=list(design_iterations),
            selected_sub_designs=list(dict.fromkeys(selected_sub_designs)),
            status=status,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._projects[project.id] = project
        return project

    def list_projects(self) -> list[DesignProject]:
        with self._lock:
            return list(self._projects.values())

    def get_project(self, project_id: int) -> DesignProject | None:
        with self._lock:
            return self._projects.get(project_id)

    def update_project(self, project_id: int, *, stale_status_ok: bool = False,
                       **updates) -> DesignProject:
        """Shallow-merge `updates` over the project and refresh updated_at.

        List fields are replaced whole, not spliced. With `stale_status_ok`
        a status the state machine refuses is dropped rather than rejected.
        """
        unknown = set(updates) - PROJECT_FIELDS
        if unknown:
            raise InvalidInputError(f"Unknown project fields: {', '.join(sorted(unknown))}")
        with self.project_lock(project_id):
            project = self.get_project(project_id)
            if project is None:
                raise NotFoundError("design_project", project_id)
            if "status" in updates:
                ok, errors = validate_status_transition(project.status, updates["status"])
                if not ok and stale_status_ok and updates["status"] in STATUS_TRANSITIONS:
                    del updates["status"]
                elif not ok:
                    raise InvalidInputError(errors[0], field="status")
            for key in ("chat_history", "design_iterations"):
                if key in updates:
                    updates[key] = list(updates[key])
            if "selected_sub_designs" in updates:
                updates["selected_sub_designs"] = list(dict.fromkeys(updates["selected_sub_designs"]))
            updated = replace(project, **updates, updated_at=utcnow())
            with self._lock:
                self._projects[project_id] = updated
            return updated

    def record_iteration(self, project_id: int, iteration: DesignIteration) -> DesignProject:
        """Append an iteration and make it the project's current design."""
        with self.project_lock(project_id):
            project = self.get_project(project_id)
            if project is None:
                raise NotFoundError("design_project", project_id)
            specs = project.current_design_data.specifications if project.current_design_data else {}
            return self.update_project(
                project_id,
                design_iterations=[*project.design_iterations, iteration],
                current_design_data=DesignData(
                    image_url=iteration.image_url, prompt=iteration.prompt, specifications=specs,
                ),
            )

    def append_chat(self, project_id: int, *messages: ChatMessage) -> DesignProject:
        """Append chat turns in order, keeping existing history as the prefix."""
        with self.project_lock(project_id):
            project = self.get_project(project_id)
            if project is None:
                raise NotFoundError("design_project", project_id)
            return self.update_project(project_id, chat_history=[*project.chat_history, *messages])

    # ── Manufacturing orders ──────────────────────────────────

    def create_order(self, project_id: int, specifications: OrderSpecifications,
                     status: str = OrderStatus.PENDING.value) -> ManufacturingOrder:
        ok, errors = validate_entity("order_specs", asdict(specifications))
        if not ok:
            raise InvalidInputError(f"Invalid manufacturing specifications: {'; '.join(errors)}")
        order = ManufacturingOrder(id=self.next_id("order"), project_id=project_id,
                                   specifications=specifications, status=status,
                                   created_at=utcnow())
        with self._lock:
            self._orders[order.id] = order
        return order

    def list_orders(self) -> list[ManufacturingOrder]:
        with self._lock:
            return list(self._orders.values())

    def get_order(self, order_id: int) -> ManufacturingOrder | None:
        with self._lock:
            return self._orders.get(order_id)

    def update_order(self, order_id: int, status: str) -> ManufacturingOrder:
        """Advance an order's status (fulfillment hook)."""
        if status not in {s.value for s in OrderStatus}:
            raise InvalidInputError(f"Unknown order status: {status}", field="status")
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise NotFoundError("manufacturing_order", order_id)
            updated = replace(order, status=status)
            self._orders[order_id] = updated
            return updated
