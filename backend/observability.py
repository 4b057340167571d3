import json
from typing import Any, Dict


def structured_log_line(payload: Dict[str, Any]) -> str:
    # One compact JSON object per log line; non-JSON values (datetimes, UUIDs) are stringified.
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)
