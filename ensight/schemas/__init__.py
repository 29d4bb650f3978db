"""Pydantic records exchanged with callers and stored in the backing store."""
from ensight.schemas.graph import (
    AddressGraph,
    GraphEdge,
    GraphNode,
    InteractionEvent,
    NeighborGraph,
    RiskSummary,
)
from ensight.schemas.risk import AddressRisk
from ensight.schemas.ens import AvatarRecord, EnsProfile, ResolvedName, ReverseRecord, TextRecord

__all__ = [
    "AddressGraph",
    "GraphEdge",
    "GraphNode",
    "InteractionEvent",
    "NeighborGraph",
    "RiskSummary",
    "AddressRisk",
    "AvatarRecord",
    "EnsProfile",
    "ResolvedName",
    "ReverseRecord",
    "TextRecord",
]
