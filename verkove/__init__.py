"""
Verkove: AI-assisted jewelry design studio.

Public API:
    from verkove import EntityStore, DesignIterationEngine, ChatEngine, ManufacturingExporter
    from verkove.types import BaseDesign, DesignProject, DesignIteration
    from verkove.config import CONFIG
    from verkove.api.server import create_app
"""
from verkove.config import CONFIG, StudioConfig
from verkove.db.store import EntityStore
from verkove.engines.chat import ChatEngine
from verkove.engines.export import ManufacturingExporter
from verkove.engines.iteration import DesignIterationEngine

__version__ = "1.0.0"
__all__ = [
    "CONFIG", "StudioConfig", "EntityStore",
    "DesignIterationEngine", "ChatEngine", "ManufacturingExporter",
]
