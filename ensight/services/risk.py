"""Blacklist risk overlay.

The blacklist set and its sync timestamp are written by an external sync job
(ScamSniffer feed); this module only reads them. Every call re-evaluates
membership, nothing here is cached.
"""
from __future__ import annotations

import logging
from typing import Optional

from ensight.schemas.graph import AddressGraph, NeighborGraph, RiskSummary
from ensight.schemas.risk import AddressRisk
from ensight.services.addresses import canonical_address
from ensight.services.graph import GraphStore
from ensight.services.store import BackingStore

logger = logging.getLogger(__name__)

BLACKLIST_KEY = "scamsniffer:addresses"
BLACKLIST_UPDATED_KEY = "scamsniffer:lastUpdated"


class RiskOverlay:
    """Combines blacklist membership with graph adjacency at read time."""

    def __init__(self, store: BackingStore, graph: GraphStore):
        self.store = store
        self.graph = graph

    async def is_flagged(self, address: str) -> bool:
        return await self.store.sismember(BLACKLIST_KEY, canonical_address(address))

    async def last_updated(self) -> Optional[int]:
        raw = await self.store.get(BLACKLIST_UPDATED_KEY)
        if not raw:
            return None
        try:
            return int(float(raw))
        except ValueError:
            logger.warning("ignoring malformed %s value %r", BLACKLIST_UPDATED_KEY, raw)
            return None

    async def address_risk(self, address: str) -> AddressRisk:
        flagged = await self.is_flagged(address)
        return AddressRisk(flagged=flagged, last_updated=await self.last_updated())

    async def risk_summary(self, address: str) -> RiskSummary:
        """Flag status of ``address`` plus how many of its neighbors are flagged.

        Cost grows with the neighbor count: one membership test per neighbor.
        """
        flagged = await self.is_flagged(address)
        neighbors = await self.graph.get_neighbors(address)
        flagged_neighbors = 0
        for neighbor in neighbors:
            if await self.store.sismember(BLACKLIST_KEY, neighbor):
                flagged_neighbors += 1
        return RiskSummary(
            flagged=flagged,
            flagged_neighbor_count=flagged_neighbors,
            total_neighbor_count=len(neighbors),
        )

    async def address_graph(self, address: str) -> AddressGraph:
        """Node (with its flag), edges and risk summary for one address."""
        node = await self.graph.get_node(address)
        edges = await self.graph.get_edges_of(address)
        summary = await self.risk_summary(address)
        node.flagged = summary.flagged
        return AddressGraph(node=node, edges=edges, risk_summary=summary)

    async def neighbor_graph(self, address: str) -> NeighborGraph:
        address = canonical_address(address)
        neighbors = await self.graph.get_neighbor_nodes(address)
        for node in neighbors:
            node.flagged = await self.store.sismember(BLACKLIST_KEY, node.address)
        edges = await self.graph.get_edges_of(address)
        return NeighborGraph(address=address, neighbors=neighbors, edges=edges)
