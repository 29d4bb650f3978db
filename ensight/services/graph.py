"""Wallet interaction graph service.

Store key schema::

    graph:node:{address}          JSON node record
    graph:edge:{from}:{to}        JSON edge record
    graph:edges-of:{address}      set of "{from}:{to}" edge keys touching the address
    graph:neighbors:{address}     set of neighbor addresses (undirected)

Node and edge upserts are read-modify-write against a shared store with no
multi-key transaction. Two concurrent events touching the same node or edge
can lose a count increment; the last writer wins. Store failures surface as
StoreUnavailableError and completed sub-writes are not rolled back.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from ensight.schemas.graph import UNKNOWN_ORIGIN, GraphEdge, GraphNode, InteractionEvent
from ensight.services.addresses import canonical_address, optional_address
from ensight.services.resolver import NameResolver
from ensight.services.store import BackingStore
from ensight.utils import now_ms

logger = logging.getLogger(__name__)

KIND_EDGE_TYPES = {
    "tx": "sent_tx",
    "sign": "signed_for",
    "connect": "connected",
    "chain": "chain_switch",
}
DEFAULT_EDGE_TYPE = "interaction"


def node_key(address: str) -> str:
    return f"graph:node:{address}"


def edge_key(from_address: str, to_address: str) -> str:
    return f"graph:edge:{from_address}:{to_address}"


def edges_of_key(address: str) -> str:
    return f"graph:edges-of:{address}"


def neighbors_key(address: str) -> str:
    return f"graph:neighbors:{address}"


def edge_type_from_kind(kind: Optional[str], method: Optional[str]) -> str:
    """Classify an interaction by its kind, falling back to the RPC method name."""
    if kind in KIND_EDGE_TYPES:
        return KIND_EDGE_TYPES[kind]
    if method and method.startswith("eth_sendTransaction"):
        return "sent_tx"
    if method and method.startswith("eth_sign"):
        return "signed_for"
    return DEFAULT_EDGE_TYPE


def _dump(record) -> str:
    return record.model_dump_json(by_alias=True, exclude_none=True, exclude={"flagged"})


class GraphStore:
    """Directed interaction multigraph persisted in a BackingStore.

    Args:
        store: Backing key-value store shared by every caller
        resolver: Optional ENS resolver used once per node to fill ``label``
    """

    def __init__(self, store: BackingStore, resolver: Optional[NameResolver] = None):
        self.store = store
        self.resolver = resolver

    async def _lookup_label(self, address: str) -> Optional[str]:
        if self.resolver is None:
            return None
        try:
            return await self.resolver.lookup_address(address)
        except Exception as exc:
            logger.warning("label lookup for %s failed: %s", address, exc)
            return None

    async def upsert_node(self, address: str, now: Optional[int] = None) -> GraphNode:
        """Create the node on first sight, otherwise bump its count and lastSeen."""
        address = canonical_address(address)
        now = now_ms() if now is None else now
        key = node_key(address)

        existing = await self.store.get(key)
        if existing:
            node = GraphNode.model_validate_json(existing)
            node.last_seen = now
            node.interaction_count += 1
        else:
            node = GraphNode(
                address=address,
                label=await self._lookup_label(address),
                first_seen=now,
                last_seen=now,
                interaction_count=1,
            )
            logger.debug("new node %s label=%s", address, node.label)
        await self.store.set(key, _dump(node))
        return node

    async def record_interaction(self, event: InteractionEvent, now: Optional[int] = None) -> GraphEdge:
        """Fold one interaction event into the graph.

        ``to`` must be a valid address; an invalid or missing ``from`` is
        recorded under the ``"unknown"`` origin and adds no neighbor relation.

        Returns:
            The edge record as written

        Raises:
            InvalidAddressError: If ``to`` is malformed (nothing is written)
            StoreUnavailableError: If the backing store fails
        """
        to_addr = canonical_address(event.to_address, field="to")
        from_addr = optional_address(event.from_address)
        if event.from_address and not from_addr:
            logger.debug("dropping malformed origin %r", event.from_address)
        now = now_ms() if now is None else now
        edge_type = edge_type_from_kind(event.kind, event.method)

        await self.upsert_node(to_addr, now)
        if from_addr:
            await self.upsert_node(from_addr, now)

        effective_from = from_addr or UNKNOWN_ORIGIN
        key = edge_key(effective_from, to_addr)
        existing = await self.store.get(key)
        if existing:
            edge = GraphEdge.model_validate_json(existing)
            edge.count += 1
            edge.last_seen = now
            edge.edge_type = edge_type
            edge.method = event.method or edge.method
            edge.kind = event.kind or edge.kind
            edge.hostname = event.hostname or edge.hostname
        else:
            edge = GraphEdge(
                from_address=effective_from,
                to_address=to_addr,
                edge_type=edge_type,
                method=event.method or "",
                kind=event.kind or "",
                hostname=event.hostname or "",
                count=1,
                first_seen=now,
                last_seen=now,
                chain_id=event.chain_id,
                value=event.value,
                has_data=event.has_data,
            )
        await self.store.set(key, _dump(edge))

        await self.store.sadd(edges_of_key(to_addr), edge.key)
        if from_addr:
            await self.store.sadd(edges_of_key(from_addr), edge.key)
            await self.store.sadd(neighbors_key(from_addr), to_addr)
            await self.store.sadd(neighbors_key(to_addr), from_addr)

        logger.debug("edge %s type=%s count=%d", edge.key, edge.edge_type, edge.count)
        return edge

    async def get_node(self, address: str) -> GraphNode:
        """Stored node, or an empty record for an address never seen."""
        address = canonical_address(address)
        raw = await self.store.get(node_key(address))
        if not raw:
            return GraphNode.empty(address)
        return GraphNode.model_validate_json(raw)

    async def get_edge(self, from_address: str, to_address: str) -> Optional[GraphEdge]:
        """Edge for the ordered pair; ``from_address`` may be ``"unknown"``."""
        if from_address != UNKNOWN_ORIGIN:
            from_address = canonical_address(from_address, field="from")
        to_address = canonical_address(to_address, field="to")
        raw = await self.store.get(edge_key(from_address, to_address))
        return GraphEdge.model_validate_json(raw) if raw else None

    async def get_edges_of(self, address: str) -> List[GraphEdge]:
        """Every edge touching ``address``, either direction, sorted by key.

        Index entries whose edge record is missing are skipped.
        """
        address = canonical_address(address)
        edges: List[GraphEdge] = []
        for member in sorted(await self.store.smembers(edges_of_key(address))):
            raw = await self.store.get(f"graph:edge:{member}")
            if not raw:
                logger.warning("edge %s indexed for %s has no record", member, address)
                continue
            edges.append(GraphEdge.model_validate_json(raw))
        return edges

    async def get_neighbors(self, address: str) -> List[str]:
        address = canonical_address(address)
        return sorted(await self.store.smembers(neighbors_key(address)))

    async def get_neighbor_nodes(self, address: str) -> List[GraphNode]:
        """Node records of every neighbor, empty records where none is stored."""
        nodes = []
        for neighbor in await self.get_neighbors(address):
            raw = await self.store.get(node_key(neighbor))
            nodes.append(GraphNode.model_validate_json(raw) if raw else GraphNode.empty(neighbor))
        return nodes
