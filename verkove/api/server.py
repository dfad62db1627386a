"""
FastAPI server: catalog, projects, generation, chat, export, uploads.

GET   /api/base-designs?category=     → base design catalog
GET   /api/base-designs/{id}          → one base design
GET   /api/sub-designs                → enhancement options
GET   /api/projects[/{id}]            → design projects
POST  /api/projects                   → create project (201)
PATCH /api/projects/{id}              → shallow-merge update
POST  /api/generate-design            → new design iteration
POST  /api/chat                       → assistant turn
POST  /api/export-design/{projectId}  → manufacturing order
GET   /api/orders[/{id}]              → manufacturing orders
PATCH /api/orders/{id}                → advance order status
POST  /api/upload                     → store a reference image
GET   /uploads/{file}                 → generated/uploaded images
GET   /api/metrics, /health
"""
from fastapi import FastAPI, File, Query, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from verkove.api.schemas import (
    ChatRequest, GenerateDesignRequest, OrderUpdate, ProjectCreate, ProjectUpdate,
)
from verkove.config import CONFIG, StudioConfig
from verkove.db.store import EntityStore
from verkove.engines.chat import ChatEngine
from verkove.engines.export import ManufacturingExporter
from verkove.engines.iteration import DesignIterationEngine
from verkove.errors import InvalidInputError, NotFoundError, StudioError
from verkove.logger import StudioLogger
from verkove.media import ImageStore
from verkove.metrics import StudioMetrics
from verkove.middleware import ConcurrencyLimitMiddleware, RequestTracingMiddleware
from verkove.providers.client import Providers, build_providers
from verkove.types import to_json


def create_app(config: StudioConfig | None = None, store: EntityStore | None = None,
               providers: Providers | None = None, images: ImageStore | None = None) -> FastAPI:
    """Wire store, media, providers and engines into an app. Missing pieces are built from config."""
    config = config or CONFIG
    logger = StudioLogger("api")
    metrics = StudioMetrics()
    store = store or EntityStore()
    images = images or ImageStore(config.upload_dir, config.upload_url_prefix,
                                  config.max_upload_bytes, config.fetch_timeout_s)
    providers = providers or build_providers(config, logger)

    iterations = DesignIterationEngine(store, images, providers.image, config,
                                       StudioLogger("iteration"), metrics)
    chat = ChatEngine(store, images, providers.image, providers.text, config,
                      StudioLogger("chat"), metrics)
    exporter = ManufacturingExporter(store, StudioLogger("export"), metrics)

    app = FastAPI(
        title="Verkove Design Studio",
        description=(
            "AI-assisted jewelry design studio. Pick a base design, refine it through "
            "prompts and chat, then hand it off to manufacturing."
        ),
        version="1.0.0",
    )
    app.state.config = config
    app.state.store = store
    app.state.images = images
    app.state.providers = providers

    app.add_middleware(ConcurrencyLimitMiddleware, max_concurrent=config.max_concurrent_generations)
    app.add_middleware(RequestTracingMiddleware, logger=StudioLogger("http"))
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Errors ────────────────────────────────────────────────

    @app.exception_handler(StudioError)
    async def studio_error(request, exc: StudioError):
        if exc.status_code >= 500:
            logger.error("request.failed", path=request.url.path, error=exc.message, kind=exc.kind)
        return JSONResponse(status_code=exc.status_code,
                            content={"success": False, "message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request, exc: RequestValidationError):
        problems = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ())[1:])
            problems.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", "invalid"))
        return JSONResponse(status_code=400,
                            content={"success": False, "message": "; ".join(problems) or "Invalid request"})

    @app.exception_handler(Exception)
    async def unexpected_error(request, exc: Exception):
        logger.error("request.crashed", path=request.url.path, error=repr(exc))
        return JSONResponse(status_code=500, content={"success": False, "message": "Internal Server Error"})

    # ── Catalog ───────────────────────────────────────────────

    @app.get("/api/base-designs")
    async def list_base_designs(category: str | None = Query(None)):
        designs = store.list_by_category(category) if category else store.list_base_designs()
        return to_json(designs)

    @app.get("/api/base-designs/{design_id}")
    async def get_base_design(design_id: int):
        design = store.get_base_design(design_id)
        if design is None:
            raise NotFoundError("base_design", design_id)
        return to_json(design)

    @app.get("/api/sub-designs")
    async def list_sub_designs():
        return to_json(store.list_sub_designs())

    # ── Projects ──────────────────────────────────────────────

    @app.get("/api/projects")
    async def list_projects():
        return to_json(store.list_projects())

    @app.get("/api/projects/{project_id}")
    async def get_project(project_id: int):
        project = store.get_project(project_id)
        if project is None:
            raise NotFoundError("design_project", project_id)
        return to_json(project)

    @app.post("/api/projects", status_code=201)
    async def create_project(req: ProjectCreate):
        project = store.create_project(**req.to_draft())
        return {"success": True, "project": to_json(project)}

    @app.patch("/api/projects/{project_id}")
    async def update_project(project_id: int, req: ProjectUpdate):
        try:
            project = store.update_project(project_id, stale_status_ok=True, **req.to_updates())
        except NotFoundError as e:
            raise InvalidInputError(e.message) from e
        return {"success": True, "project": to_json(project)}

    # ── Design iterations ─────────────────────────────────────

    @app.post("/api/generate-design")
    async def generate_design(req: GenerateDesignRequest):
        project = store.get_project(req.project_id) if req.project_id is not None else None
        base_design_id = req.base_design_id
        sub_design_ids = req.sub_design_ids or []
        if req.project_id is not None and project is None:
            logger.warn("project.unresolved", project_id=req.project_id)
        if project is not None:
            if base_design_id is None:
                base_design_id = project.base_design_id
            sub_design_ids = sub_design_ids or project.selected_sub_designs

        outcome = await iterations.generate(req.prompt or "", base_design_id,
                                            req.previous_image, sub_design_ids)
        if project is not None:
            store.record_iteration(project.id, outcome.iteration)
            logger.info("iteration.recorded", project_id=project.id,
                        iteration_id=outcome.iteration.id, generated=outcome.generated)
        return {"success": True, "iteration": to_json(outcome.iteration), "message": outcome.message}

    @app.post("/api/chat")
    async def chat_message(req: ChatRequest):
        context = req.context.to_domain() if req.context else None
        response = await chat.converse(req.message or "", req.project_id, context, req.image_url)
        return {"success": True, "response": to_json(response)}

    # ── Manufacturing ─────────────────────────────────────────

    @app.post("/api/export-design/{project_id}")
    async def export_design(project_id: int):
        result = exporter.export(project_id)
        return {
            "success": True,
            "message": f"Design {project_id} sent to manufacturing",
            "order": to_json(result.order),
            "project": to_json(result.project),
            "downloadLinks": result.download_links,
        }

    @app.get("/api/orders")
    async def list_orders():
        return to_json(store.list_orders())

    @app.get("/api/orders/{order_id}")
    async def get_order(order_id: int):
        order = store.get_order(order_id)
        if order is None:
            raise NotFoundError("manufacturing_order", order_id)
        return to_json(order)

    @app.patch("/api/orders/{order_id}")
    async def update_order(order_id: int, req: OrderUpdate):
        order = store.update_order(order_id, req.status.value)
        return {"success": True, "order": to_json(order)}

    # ── Uploads ───────────────────────────────────────────────

    @app.post("/api/upload")
    async def upload_image(image: UploadFile = File(...)):
        # One byte past the limit is enough to reject an oversized file.
        data = await image.read(images.max_bytes + 1)
        url = images.save_upload(data, image.content_type, image.filename or "")
        logger.info("upload.stored", url=url, size=len(data))
        return {"success": True, "imageUrl": url}

    app.mount(images.url_prefix, StaticFiles(directory=str(images.root)), name="uploads")

    # ── Ops ───────────────────────────────────────────────────

    @app.get("/api/metrics")
    async def metrics_snapshot():
        return metrics.snapshot()

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "providers": {
                "image": providers.image.name if providers.image else None,
                "text": providers.text.name if providers.text else None,
            },
        }

    return app


app = create_app()
