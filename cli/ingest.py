from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Dict, Iterator, Tuple, Union

from ensight.schemas.graph import InteractionEvent

EVENT_FIELDS = ["from", "to", "method", "kind", "hostname", "chainId", "value", "hasData"]

Row = Union[str, Dict[str, Any]]


def _normalize_value(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    text = value.strip()
    return text or None


def _parse_ndjson(path: Path) -> Iterator[Tuple[int, str]]:
    # lines are decoded in prepare_event
    with path.open("r", encoding="utf-8") as handle:
        for line_no, line in enumerate(handle, start=1):
            line = line.strip()
            if line:
                yield line_no, line


def _parse_csv(path: Path) -> Iterator[Tuple[int, Dict[str, Any]]]:
    with path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        for row_no, row in enumerate(reader, start=2):
            yield row_no, row


def iter_rows(path: Path) -> Iterator[Tuple[int, Row]]:
    """Yield (line number, row): a dict per CSV record, the raw text per NDJSON line."""
    if path.suffix.lower() == ".csv":
        return _parse_csv(path)
    return _parse_ndjson(path)


def prepare_event(row: Row) -> InteractionEvent:
    """Build an InteractionEvent from a raw row; unknown columns are dropped.

    Raises:
        ValueError: If the row is not a JSON object or fails validation
    """
    if isinstance(row, str):
        row = json.loads(row)
    if not isinstance(row, dict):
        raise ValueError("expected a JSON object")
    normalized = {key: _normalize_value(row.get(key)) for key in EVENT_FIELDS}
    if not normalized["to"]:
        raise ValueError('Missing required field: to')
    return InteractionEvent.model_validate({k: v for k, v in normalized.items() if v is not None})
