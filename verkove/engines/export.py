"""
Manufacturing export: project to ManufacturingOrder.

Specifications are derived flat from the project's base design;
iterations change imagery only, never manufacturing parameters. Each
call creates a new pending order and moves the project to
"manufacturing" (a no-op when it already is). Final projects keep their
status. No LLM involved.
"""
from dataclasses import asdict, dataclass

from verkove.db.store import EntityStore
from verkove.errors import NotFoundError
from verkove.logger import StudioLogger
from verkove.metrics import StudioMetrics
from verkove.types import (
    DesignProject, Dimensions, ManufacturingOrder, OrderSpecifications, ProjectStatus,
)

DEFAULT_SPECIFICATIONS = OrderSpecifications(
    materials=["14K Gold"],
    dimensions=Dimensions(width="10mm", height="10mm", depth="5mm"),
    weight="5g",
    finish="High Polish",
    timeline="4-6 weeks",
    price=1500.0,
)


def derive_specifications(store: EntityStore, project: DesignProject) -> OrderSpecifications:
    base = store.get_base_design(project.base_design_id) if project.base_design_id is not None else None
    specs = base.specifications if base else None
    if specs is None:
        return DEFAULT_SPECIFICATIONS
    return OrderSpecifications(
        materials=list(specs.materials) or DEFAULT_SPECIFICATIONS.materials,
        dimensions=specs.dimensions if any(asdict(specs.dimensions).values()) else DEFAULT_SPECIFICATIONS.dimensions,
        weight=specs.weight or DEFAULT_SPECIFICATIONS.weight,
        finish=DEFAULT_SPECIFICATIONS.finish,
        timeline=DEFAULT_SPECIFICATIONS.timeline,
        price=DEFAULT_SPECIFICATIONS.price,
    )


def download_links(order: ManufacturingOrder) -> dict[str, str]:
    base = f"/api/downloads/{order.id}"
    return {
        "specificationSheet": f"{base}/specifications.pdf",
        "model3d": f"{base}/model.stl",
        "renders": f"{base}/renders.zip",
    }


@dataclass
class ExportResult:
    order: ManufacturingOrder
    project: DesignProject
    download_links: dict[str, str]


class ManufacturingExporter:
    def __init__(self, store: EntityStore, logger: StudioLogger | None = None,
                 metrics: StudioMetrics | None = None):
        self.store = store
        self.logger = logger or StudioLogger("export")
        self.metrics = metrics or StudioMetrics()

    def export(self, project_id: int) -> ExportResult:
        with self.store.project_lock(project_id):
            project = self.store.get_project(project_id)
            if project is None:
                raise NotFoundError("design_project", project_id)

            specs = derive_specifications(self.store, project)
            order = self.store.create_order(project.id, specs)
            if project.status != ProjectStatus.FINAL.value:
                project = self.store.update_project(project.id, status=ProjectStatus.MANUFACTURING.value)

        self.metrics.incr("exports")
        self.logger.info("export.done", project_id=project.id, order_id=order.id,
                         materials=specs.materials)
        return ExportResult(order=order, project=project, download_links=download_links(order))
