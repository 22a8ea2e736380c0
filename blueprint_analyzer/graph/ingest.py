from typing import List, Dict, Any, Optional, Union, Mapping, Tuple, Type, TypeVar
from collections import defaultdict
from hashlib import sha1
from types import MappingProxyType
import json

from pydantic import BaseModel, ValidationError

from ..config import settings
from ..errors import MalformedGraph
from ..types import Graph, Node, NodeKind, Pin, PinDirection, Link
from ..utils.logger import app_logger
from .snapshot import GraphSnapshot, PinRecord

logger = app_logger.bind(component="ingest")

ModelT = TypeVar("ModelT", bound=BaseModel)


def ingest(raw: Union[GraphSnapshot, Mapping[str, Any]],
           exec_fan_in_policy: Optional[str] = None) -> Graph:
    """Validate a raw snapshot and build a frozen, indexed Graph.

    Only structural referential integrity is checked here: unique ids per
    namespace, pins owned by existing nodes, links between existing pins
    running output -> input. Semantic problems are left to the rules.
    With ``exec_fan_in_policy == "error"`` an exec input pin fed by more
    than one link is treated as structural too.

    Raises:
        MalformedGraph: listing every structural problem found.
    """
    policy = exec_fan_in_policy or settings.exec_fan_in_policy
    snapshot = parse_snapshot(GraphSnapshot, raw)
    label = snapshot.name or snapshot.id
    problems: List[str] = []

    node_records = {}
    for record in snapshot.nodes:
        if record.id in node_records:
            problems.append(f"duplicate node id '{record.id}'")
            continue
        node_records[record.id] = record

    # Pins, nested under their node or listed flat with node_id
    pin_records: Dict[str, PinRecord] = {}
    pin_owner: Dict[str, str] = {}
    node_pin_order: Dict[str, List[str]] = defaultdict(list)

    def add_pin(pin: PinRecord, owner_id: Optional[str]):
        if pin.id in pin_records:
            problems.append(f"duplicate pin id '{pin.id}'")
            return
        if not owner_id:
            problems.append(f"pin '{pin.id}' has no owning node")
            return
        if owner_id not in node_records:
            problems.append(f"pin '{pin.id}' references unknown node '{owner_id}'")
            return
        pin_records[pin.id] = pin
        pin_owner[pin.id] = owner_id
        node_pin_order[owner_id].append(pin.id)

    for record in node_records.values():
        for pin in record.pins:
            if pin.node_id and pin.node_id != record.id:
                problems.append(
                    f"pin '{pin.id}' is nested under node '{record.id}' but names node '{pin.node_id}'"
                )
                continue
            add_pin(pin, record.id)
    for pin in snapshot.pins:
        add_pin(pin, pin.node_id)

    # Links
    link_records = {}
    for record in snapshot.links:
        if record.id in link_records:
            problems.append(f"duplicate link id '{record.id}'")
            continue
        source = pin_records.get(record.source)
        target = pin_records.get(record.target)
        if source is None:
            problems.append(f"link '{record.id}' references unknown source pin '{record.source}'")
        elif source.direction != "output":
            problems.append(f"link '{record.id}' source pin '{record.source}' is not an output pin")
        if target is None:
            problems.append(f"link '{record.id}' references unknown target pin '{record.target}'")
        elif target.direction != "input":
            problems.append(f"link '{record.id}' target pin '{record.target}' is not an input pin")
        link_records[record.id] = record

    for entry_id in snapshot.entry_nodes:
        if entry_id not in node_records:
            problems.append(f"entry node '{entry_id}' does not exist")

    if problems:
        logger.warning(f"Rejected snapshot {label!r}: {len(problems)} structural problem(s)")
        raise MalformedGraph(problems, graph_name=label)

    links_by_pin: Dict[str, List[str]] = defaultdict(list)
    for link_id, record in link_records.items():
        links_by_pin[record.source].append(link_id)
        links_by_pin[record.target].append(link_id)

    if policy == "error":
        for pin_id, record in sorted(pin_records.items()):
            incoming = [l for l in links_by_pin[pin_id] if link_records[l].target == pin_id]
            if record.direction == "input" and record.data_kind == "exec" and len(incoming) > 1:
                problems.append(f"exec input pin '{pin_id}' has {len(incoming)} incoming links")
        if problems:
            logger.warning(f"Rejected snapshot {label!r}: execution fan-in not allowed")
            raise MalformedGraph(problems, graph_name=label)

    graph = _build_graph(snapshot, node_records, pin_records, pin_owner,
                         node_pin_order, link_records, links_by_pin)
    logger.debug(
        f"Ingested graph {graph.id!r}: {len(graph.nodes)} nodes, "
        f"{len(graph.pins)} pins, {len(graph.links)} links"
    )
    return graph


def parse_snapshot(model: Type[ModelT], raw: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """Validate a raw snapshot against ``model``, converting schema errors into MalformedGraph."""
    if isinstance(raw, model):
        return raw
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        raise MalformedGraph(problems) from e


def _build_graph(snapshot: GraphSnapshot, node_records, pin_records, pin_owner,
                 node_pin_order, link_records, links_by_pin) -> Graph:
    declared_entries = set(snapshot.entry_nodes)

    nodes: Dict[str, Node] = {}
    for node_id, record in node_records.items():
        kind = NodeKind.parse(record.kind)
        if record.entry is not None:
            is_entry = record.entry or node_id in declared_entries
        else:
            is_entry = node_id in declared_entries or kind.is_entry_kind
        nodes[node_id] = Node(
            id=node_id,
            kind=kind,
            type_name=record.type_name or record.kind,
            title=record.title,
            function_name=record.function_name,
            is_entry=is_entry,
            properties=MappingProxyType(dict(record.properties)),
            pin_ids=tuple(node_pin_order.get(node_id, ())),
        )

    pins: Dict[str, Pin] = {}
    for pin_id, record in pin_records.items():
        pins[pin_id] = Pin(
            id=pin_id,
            node_id=pin_owner[pin_id],
            direction=PinDirection(record.direction),
            data_kind=record.data_kind,
            link_ids=frozenset(links_by_pin.get(pin_id, ())),
            default_value=record.default_value,
            optional=record.optional,
        )

    links: Dict[str, Link] = {}
    outgoing: Dict[str, List[str]] = {node_id: [] for node_id in nodes}
    incoming: Dict[str, List[str]] = {node_id: [] for node_id in nodes}
    for link_id, record in link_records.items():
        links[link_id] = Link(id=link_id, source_pin_id=record.source, target_pin_id=record.target)
        outgoing[pin_owner[record.source]].append(link_id)
        incoming[pin_owner[record.target]].append(link_id)

    return Graph(
        id=snapshot.id or snapshot.name or snapshot_fingerprint(snapshot),
        name=snapshot.name,
        source=snapshot.source,
        timestamp=snapshot.timestamp,
        nodes=MappingProxyType(nodes),
        pins=MappingProxyType(pins),
        links=MappingProxyType(links),
        pin_owner=MappingProxyType(dict(pin_owner)),
        outgoing_links=MappingProxyType(_freeze_index(outgoing)),
        incoming_links=MappingProxyType(_freeze_index(incoming)),
    )


def _freeze_index(index: Dict[str, List[str]]) -> Dict[str, Tuple[str, ...]]:
    return {key: tuple(sorted(values)) for key, values in index.items()}


def snapshot_fingerprint(snapshot: BaseModel, prefix: str = "graph") -> str:
    """Content-derived id for snapshots that carry neither id nor name."""
    payload = json.dumps(snapshot.model_dump(mode="json"), sort_keys=True, ensure_ascii=False)
    return f"{prefix}_{sha1(payload.encode('utf-8')).hexdigest()[:12]}"
