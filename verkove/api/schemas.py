"""
Request bodies for the studio API.

camelCase on the wire, snake_case in Python. Unknown keys are rejected
so malformed payloads fail at the boundary instead of leaking into the
store. Each model converts itself into the domain dataclasses.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from verkove.types import (
    ChatContext, ChatMessage, DesignData, DesignIteration, OrderStatus, ProjectStatus, utcnow,
)


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class DesignDataIn(ApiModel):
    image_url: str = ""
    prompt: str = ""
    specifications: dict = Field(default_factory=dict)

    def to_domain(self) -> DesignData:
        return DesignData(image_url=self.image_url, prompt=self.prompt,
                          specifications=dict(self.specifications))


class ChatMessageIn(ApiModel):
    id: str
    content: str
    is_user: bool
    timestamp: Optional[datetime] = None
    image_url: Optional[str] = None

    def to_domain(self) -> ChatMessage:
        return ChatMessage(id=self.id, content=self.content, is_user=self.is_user,
                           timestamp=self.timestamp or utcnow(), image_url=self.image_url)


class DesignIterationIn(ApiModel):
    id: str
    image_url: str
    prompt: str
    timestamp: Optional[datetime] = None
    ai_response: str = ""

    def to_domain(self) -> DesignIteration:
        return DesignIteration(id=self.id, image_url=self.image_url, prompt=self.prompt,
                               timestamp=self.timestamp or utcnow(), ai_response=self.ai_response)


class ProjectCreate(ApiModel):
    name: str = Field(..., min_length=1)
    base_design_id: Optional[int] = None
    current_design_data: Optional[DesignDataIn] = None
    chat_history: list[ChatMessageIn] = Field(default_factory=list)
    design_iterations: list[DesignIterationIn] = Field(default_factory=list)
    selected_sub_designs: list[int] = Field(default_factory=list)
    status: ProjectStatus = ProjectStatus.DRAFT

    def to_draft(self) -> dict:
        return {
            "name": self.name,
            "base_design_id": self.base_design_id,
            "current_design_data": self.current_design_data.to_domain() if self.current_design_data else None,
            "chat_history": [m.to_domain() for m in self.chat_history],
            "design_iterations": [i.to_domain() for i in self.design_iterations],
            "selected_sub_designs": self.selected_sub_designs,
            "status": self.status.value,
        }


class ProjectUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=1)
    base_design_id: Optional[int] = None
    current_design_data: Optional[DesignDataIn] = None
    chat_history: Optional[list[ChatMessageIn]] = None
    design_iterations: Optional[list[DesignIterationIn]] = None
    selected_sub_designs: Optional[list[int]] = None
    status: Optional[ProjectStatus] = None

    # Clients echo the whole project back; server-owned fields are ignored.
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_updates(self) -> dict:
        """Only the fields the client actually sent, as domain values."""
        updates = {}
        for name in self.model_fields_set - {"id", "created_at", "updated_at"}:
            value = getattr(self, name)
            if name == "current_design_data":
                value = value.to_domain() if value else None
            elif name in ("chat_history", "design_iterations"):
                value = [v.to_domain() for v in value or []]
            elif name == "selected_sub_designs":
                value = value or []
            elif name == "status":
                if value is None:
                    continue
                value = value.value
            elif name == "name" and value is None:
                continue
            updates[name] = value
        return updates


class GenerateDesignRequest(ApiModel):
    prompt: Optional[str] = None
    base_design_id: Optional[int] = None
    previous_image: Optional[str] = None
    project_id: Optional[int] = None
    sub_design_ids: Optional[list[int]] = None


class ChatContextIn(ApiModel):
    base_design_id: Optional[int] = Field(None, alias="baseDesign")
    current_design: Optional[DesignDataIn] = None

    def to_domain(self) -> ChatContext:
        return ChatContext(
            base_design_id=self.base_design_id,
            current_design=self.current_design.to_domain() if self.current_design else None,
        )


class ChatRequest(ApiModel):
    message: Optional[str] = None
    project_id: Optional[int] = None
    context: Optional[ChatContextIn] = None
    image_url: Optional[str] = None


class OrderUpdate(ApiModel):
    status: OrderStatus
