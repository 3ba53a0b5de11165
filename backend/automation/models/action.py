"""Pydantic models for the action catalog."""

from enum import Enum

from pydantic import BaseModel


class ActionCategory(str, Enum):
    """Groups shown in the action picker."""

    ITEM = "item"
    BOARD = "board"
    NOTIFICATION = "notification"
    EXTERNAL = "external"
    DATA = "data"


class ActionDefinition(BaseModel):
    """An action a workflow can perform."""

    value: str
    label: str
    category: ActionCategory
