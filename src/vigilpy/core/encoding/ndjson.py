"""NDJSON encoder for log entries."""

import json
from collections.abc import Iterable
from typing import Any

from vigilpy.core.models import LogEntry


def log_to_dict(entry: LogEntry) -> dict[str, Any]:
    return {
        "timestamp": entry.timestamp,
        "level": str(entry.level),
        "message": entry.message,
        "category": str(entry.category),
        "source": entry.source,
        "context": entry.context.as_dict(),
        "attributes": entry.attributes,
    }


def encode_logs(entries: Iterable[LogEntry]) -> str:
    """Encode log entries to newline-delimited JSON.

    Args:
        entries: An iterable of LogEntry objects.

    Returns:
        NDJSON string with one JSON object per line.
        Empty string if no entries.
    """
    lines = [json.dumps(log_to_dict(entry)) for entry in entries]
    if not lines:
        return ""
    return "\n".join(lines) + "\n"
