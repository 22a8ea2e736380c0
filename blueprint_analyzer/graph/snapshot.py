"""
Raw snapshot records exchanged with the editor/asset layer.
"""
from typing import List, Dict, Any, Optional, Literal
from pydantic import BaseModel, Field, model_validator


class PinRecord(BaseModel):
    """A pin as supplied by the snapshot producer."""
    id: str
    node_id: Optional[str] = None  # required when listed at graph level
    direction: Literal['input', 'output']
    data_kind: str = "exec"
    default_value: Optional[Any] = None
    optional: bool = False


class NodeRecord(BaseModel):
    """A node as supplied by the snapshot producer."""
    id: str
    kind: str = "other"
    type_name: Optional[str] = None
    title: str = ""
    function_name: str = ""
    entry: Optional[bool] = None
    properties: Dict[str, Any] = Field(default_factory=dict)
    pins: List[PinRecord] = Field(default_factory=list)


class LinkRecord(BaseModel):
    """A link between two pins, ``source`` must be an output pin."""
    id: Optional[str] = None
    source: str
    target: str

    @model_validator(mode="after")
    def default_id(self):
        if not self.id:
            self.id = f"{self.source}->{self.target}"
        return self


class GraphSnapshot(BaseModel):
    """Complete description of one graph handed to ``ingest``."""
    id: Optional[str] = None
    name: str = ""
    source: str = ""
    timestamp: str = ""
    entry_nodes: List[str] = Field(default_factory=list)
    nodes: List[NodeRecord] = Field(default_factory=list)
    pins: List[PinRecord] = Field(default_factory=list)
    links: List[LinkRecord] = Field(default_factory=list)
