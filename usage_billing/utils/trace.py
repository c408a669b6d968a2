"""Append-only JSONL trace of rating runs and payment dispatch attempts."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    return str(obj)


@dataclass
class TraceLogger:
    path: Path
    enabled: bool = True
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def log(
        self,
        phase: str,
        payload: Dict[str, Any],
        *,
        invoice_id: Optional[str] = None,
        charge_id: Optional[str] = None,
    ) -> None:
        if not self.enabled:
            return

        event: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "phase": phase,
            "payload": payload,
        }
        if invoice_id:
            event["invoice_id"] = invoice_id
        if charge_id:
            event["charge_id"] = charge_id

        line = json.dumps(event, ensure_ascii=False, default=_json_default)
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")


def build_trace_logger(path: Path | str, enabled: bool = True) -> TraceLogger:
    return TraceLogger(Path(path), enabled=enabled)


def read_trace(path: Path | str) -> List[Dict[str, Any]]:
    p = Path(path)
    if not p.exists():
        return []
    return [json.loads(line) for line in p.read_text(encoding="utf-8").splitlines() if line.strip()]


__all__ = ["TraceLogger", "build_trace_logger", "read_trace"]
