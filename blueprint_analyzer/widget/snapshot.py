"""
Raw widget-tree records exchanged with the UI designer layer.
"""
from typing import List, Optional
from pydantic import BaseModel, Field


class WidgetRecord(BaseModel):
    """A widget of the designer tree with its children."""
    name: str
    type: str
    bound_properties: List[str] = Field(default_factory=list)
    children: List["WidgetRecord"] = Field(default_factory=list)


WidgetRecord.model_rebuild()


class WidgetTreeSnapshot(BaseModel):
    """Complete widget tree of one widget blueprint."""
    id: Optional[str] = None
    name: str = ""
    source: str = ""
    timestamp: str = ""
    root: Optional[WidgetRecord] = None
