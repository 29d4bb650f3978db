from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import AsyncIterator, Callable, List, Optional

from cli import ingest as ingest_lib
from cli.utils import row_sample, safe_filename
from ensight.schemas.ens import AvatarRecord, EnsProfile, ResolvedName, ReverseRecord, TextRecord
from ensight.schemas.graph import AddressGraph, GraphEdge, InteractionEvent, NeighborGraph
from ensight.schemas.risk import AddressRisk
from ensight.services import resolver as ens
from ensight.services.addresses import canonical_address
from ensight.services.cache import TTLCache
from ensight.services.graph import GraphStore
from ensight.services.resolver import CachedNameResolver, NameResolver, Web3NameResolver
from ensight.services.risk import RiskOverlay
from ensight.services.store import BackingStore, build_store
from ensight.settings import Settings

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("csv", "json")
EDGE_COLUMNS = [
    "from", "to", "type", "method", "kind", "hostname", "count",
    "firstSeen", "lastSeen", "chainId", "value", "hasData",
]


@dataclass
class Services:
    """Wired components for one command invocation."""
    settings: Settings
    store: BackingStore
    resolver: NameResolver
    graph: GraphStore
    risk: RiskOverlay


@dataclass
class IngestResult:
    """Result of ingesting an interaction file."""
    path: str
    events_recorded: int = 0
    events_skipped: int = 0
    errors: List[dict] = field(default_factory=list)
    persisted: bool = True

    @property
    def success(self) -> bool:
        return self.events_recorded > 0 or self.events_skipped == 0


def build_services(
    settings: Settings,
    store: Optional[BackingStore] = None,
    resolver: Optional[NameResolver] = None,
) -> Services:
    store = store if store is not None else build_store(settings)
    if resolver is None:
        resolver = CachedNameResolver(
            Web3NameResolver(settings.rpc_url),
            TTLCache.from_settings(settings.cache),
        )
    graph = GraphStore(store, resolver)
    return Services(settings, store, resolver, graph, RiskOverlay(store, graph))


@asynccontextmanager
async def open_services(settings: Settings, **overrides) -> AsyncIterator[Services]:
    services = build_services(settings, **overrides)
    try:
        yield services
    finally:
        await services.store.close()


async def record(services: Services, event: InteractionEvent) -> GraphEdge:
    return await services.graph.record_interaction(event)


async def ingest_file(
    services: Services,
    path: Path,
    skip_errors: bool = False,
    progress_callback: Optional[Callable[[int], None]] = None,
) -> IngestResult:
    """Record every interaction in an NDJSON or CSV file.

    Args:
        services: Wired components
        path: Input file; ``.csv`` is read as CSV, anything else as NDJSON
        skip_errors: If True, skip rows that fail validation instead of aborting
        progress_callback: Optional callback(processed) every 500 rows

    Returns:
        IngestResult with counts and per-row errors

    Raises:
        ValueError: On the first invalid row when skip_errors is False
        StoreUnavailableError: If the backing store fails; rows already
            recorded stay recorded
    """
    result = IngestResult(path=str(path), persisted=services.store.persistent)
    processed = 0
    for line_no, row in ingest_lib.iter_rows(path):
        processed += 1
        try:
            event = ingest_lib.prepare_event(row)
            await services.graph.record_interaction(event)
        except ValueError as exc:
            if not skip_errors:
                raise ValueError(f"Line {line_no}: {exc}") from exc
            result.events_skipped += 1
            result.errors.append({"line": line_no, "error": str(exc), "sample": row_sample(row)})
            continue
        result.events_recorded += 1
        if progress_callback and processed % 500 == 0:
            progress_callback(processed)

    logger.info(
        "ingested %s: %d recorded, %d skipped",
        path, result.events_recorded, result.events_skipped,
    )
    return result


def print_ingest_report(result: IngestResult, details: bool = False) -> List[str]:
    """Format an ingest result for CLI output."""
    lines = [f"{Path(result.path).name}: {result.events_recorded} events recorded, "
             f"{result.events_skipped} skipped"]
    if not result.persisted:
        lines.append("[WARN] No redis_url configured; the graph was built in memory only")
    shown = result.errors if details else result.errors[:3]
    for err in shown:
        lines.append(f"[ERROR] Line {err['line']}: {err['error']}")
        if details:
            lines.append(f"        {err['sample']}")
    hidden = len(result.errors) - len(shown)
    if hidden > 0:
        lines.append(f"... and {hidden} more errors (use --details to show all)")
    return lines


async def show_address(services: Services, address: str) -> AddressGraph:
    return await services.risk.address_graph(address)


async def show_neighbors(services: Services, address: str) -> NeighborGraph:
    return await services.risk.neighbor_graph(address)


async def address_risk(services: Services, address: str) -> AddressRisk:
    return await services.risk.address_risk(address)


async def resolve_name(services: Services, name: str) -> Optional[ResolvedName]:
    return await ens.resolve(services.resolver, name)


async def reverse_lookup(services: Services, address: str) -> Optional[ReverseRecord]:
    return await ens.reverse(services.resolver, address)


async def text_record(services: Services, name: str, key: str) -> Optional[TextRecord]:
    return await ens.text_record(services.resolver, name, key)


async def avatar(services: Services, name: str) -> Optional[AvatarRecord]:
    return await ens.avatar(services.resolver, name)


async def ens_profile(services: Services, name: str) -> Optional[EnsProfile]:
    return await ens.profile(services.resolver, name)


async def export_edges(
    services: Services,
    address: str,
    fmt: str,
    output_path: Optional[Path] = None,
) -> Path:
    import pandas as pd

    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported format {fmt!r}; use one of {', '.join(EXPORT_FORMATS)}")
    address = canonical_address(address)
    edges = await services.graph.get_edges_of(address)

    if output_path is None:
        output_path = Path("exports") / f"edges-{safe_filename(address)}.{fmt}"
    output_path.parent.mkdir(parents=True, exist_ok=True)

    df = pd.DataFrame(
        [edge.model_dump(by_alias=True) for edge in edges],
        columns=EDGE_COLUMNS,
    )
    if not df.empty:
        df = df.sort_values(["lastSeen", "from", "to"], ascending=[False, True, True])

    if fmt == "csv":
        df.to_csv(output_path, index=False)
    else:
        df.to_json(output_path, orient="records", indent=2)
    return output_path
