"""Structured analysis events: printed as one JSON line, collected in the run's event log"""
import json
from pathlib import Path
from typing import Dict, Any, Optional, List, Union
from datetime import datetime, UTC

PREFIX = '[ARCHNET]'


def format_event(event_type: str, payload: Dict[str, Any]) -> str:
    return f"{PREFIX} {event_type}: {json.dumps(payload, default=str)}"


def log_event(
    event_type: str,
    payload: Dict[str, Any],
    sink: Optional[List[Dict]] = None,
    timestamp: Optional[datetime] = None,
    echo: bool = True
) -> Dict[str, Any]:
    """
    Record one pipeline event.

    The entry is the payload flattened next to `timestamp` and `event_type`.
    It goes to `sink` (the engine's event_log, written out as
    analysis_log.jsonl) and, with echo, to stdout.
    """
    stamp = timestamp or datetime.now(UTC)
    entry = {'timestamp': stamp.isoformat(), 'event_type': event_type, **payload}

    if sink is not None:
        sink.append(entry)
    if echo:
        print(format_event(event_type, payload))
    return entry


def read_event_log(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Load an analysis_log.jsonl written by ReportGenerator.write_event_log"""
    with open(path, 'r') as f:
        return [json.loads(line) for line in f if line.strip()]


def events_of_type(events: List[Dict[str, Any]], event_type: str) -> List[Dict[str, Any]]:
    return [e for e in events if e.get('event_type') == event_type]
