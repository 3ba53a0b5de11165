"""Pydantic models for edges between workflow nodes."""

from pydantic import BaseModel
from pydantic import Field as PydanticField


class WorkflowEdge(BaseModel):
    """A directed connection, optionally leaving a named output handle."""

    id: str
    source: str
    target: str
    source_handle: str | None = PydanticField(default=None, alias="sourceHandle")
    label: str | None = None

    model_config = {"populate_by_name": True}


class EdgeCreate(BaseModel):
    """Request model for connecting two nodes."""

    source: str
    target: str
    source_handle: str | None = PydanticField(default=None, alias="sourceHandle")
    label: str | None = None

    model_config = {"populate_by_name": True}


class EdgeRewire(BaseModel):
    """Request model for moving an edge's endpoints. Omitted fields stay."""

    source: str | None = None
    target: str | None = None
    source_handle: str | None = PydanticField(default=None, alias="sourceHandle")

    model_config = {"populate_by_name": True}
