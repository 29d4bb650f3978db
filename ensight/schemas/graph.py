"""Interaction graph Pydantic models.

Field aliases are the camelCase names used on the wire and in stored records.
"""
from typing import List, Optional, Union

from pydantic import BaseModel, Field

UNKNOWN_ORIGIN = "unknown"


class InteractionEvent(BaseModel):
    """One wallet-to-contract interaction as reported by a client."""

    from_address: Optional[str] = Field(default=None, alias="from")
    to_address: str = Field(alias="to")
    method: Optional[str] = None
    kind: Optional[str] = None
    hostname: Optional[str] = None
    chain_id: Optional[Union[int, str]] = Field(default=None, alias="chainId")
    value: Optional[Union[int, str]] = None
    has_data: Optional[bool] = Field(default=None, alias="hasData")

    class Config:
        populate_by_name = True


class GraphNode(BaseModel):
    """Per-address summary record."""

    address: str
    label: Optional[str] = None
    first_seen: int = Field(default=0, alias="firstSeen")
    last_seen: int = Field(default=0, alias="lastSeen")
    interaction_count: int = Field(default=0, alias="interactionCount")
    flagged: bool = False

    class Config:
        populate_by_name = True

    @classmethod
    def empty(cls, address: str) -> "GraphNode":
        return cls(address=address)


class GraphEdge(BaseModel):
    """Aggregated directed relationship between two addresses."""

    from_address: str = Field(alias="from")
    to_address: str = Field(alias="to")
    edge_type: str = Field(alias="type")
    method: str = ""
    kind: str = ""
    hostname: str = ""
    count: int = 1
    first_seen: int = Field(alias="firstSeen")
    last_seen: int = Field(alias="lastSeen")
    # First-seen snapshot: set when the edge is created, never refreshed.
    chain_id: Optional[Union[int, str]] = Field(default=None, alias="chainId")
    value: Optional[Union[int, str]] = None
    has_data: Optional[bool] = Field(default=None, alias="hasData")

    class Config:
        populate_by_name = True

    @property
    def key(self) -> str:
        return f"{self.from_address}:{self.to_address}"


class RiskSummary(BaseModel):
    """Blacklist membership of an address and of its neighbors."""

    flagged: bool = False
    flagged_neighbor_count: int = Field(default=0, alias="flaggedNeighborCount")
    total_neighbor_count: int = Field(default=0, alias="totalNeighborCount")

    class Config:
        populate_by_name = True


class AddressGraph(BaseModel):
    """Node, edges and risk summary for one address."""

    node: GraphNode
    edges: List[GraphEdge]
    risk_summary: RiskSummary = Field(alias="riskSummary")

    class Config:
        populate_by_name = True


class NeighborGraph(BaseModel):
    """Neighbor nodes and the edges touching an address."""

    address: str
    neighbors: List[GraphNode]
    edges: List[GraphEdge]
