from __future__ import annotations

import re

from ensight.utils import compact_json

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]+")


def safe_filename(value: str) -> str:
    return _UNSAFE.sub("_", value)


def to_json(model) -> str:
    return model.model_dump_json(by_alias=True, indent=2)


def row_sample(row, limit: int = 5) -> str:
    if not isinstance(row, dict):
        return str(row)[:200]
    return compact_json({k: v for k, v in list(row.items())[:limit]})
