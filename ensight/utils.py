from __future__ import annotations

import json
import time
from typing import Any, Dict


def now_ms() -> int:
    return int(time.time() * 1000)


def compact_json(data: Dict[str, Any]) -> str:
    return json.dumps(data, separators=(",", ":"), sort_keys=True)
