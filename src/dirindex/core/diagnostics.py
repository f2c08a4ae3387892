"""Runtime diagnostics envelope, operation observer and JSONL sink.

Envelope schema:
    {
      "event": "<string>",
      "component": "<string>",
      "operation": "<string>",
      "timestamp": "<iso8601 utc with trailing Z>",
      "data": { ... }
    }

Components wrap their operations in ``observe_operation`` which publishes
``operation.start`` / ``operation.end`` envelopes on the EventBus and logs a
single summary line when the operation ends.
"""

from __future__ import annotations

import json
import time
import traceback
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from dirindex.core.config import ConfigError, ConfigResolver
from dirindex.core.events import get_event_bus
from dirindex.core.logging import get_logger

_logger = get_logger(__name__)

_ENVELOPE_KEYS = frozenset({"event", "component", "operation", "timestamp", "data"})

# Keys copied from an operation summary into the end-of-operation log line.
_SUMMARY_LOG_KEYS = (
    "resolved_path",
    "items_count",
    "real_count",
    "virtual_count",
    "cache_hit",
    "persisted",
    "dropped",
    "rejected",
)


def build_envelope(
    *,
    event: str,
    component: str,
    operation: str,
    data: dict[str, Any],
) -> dict[str, Any]:
    """Build the canonical diagnostics envelope."""
    ts = datetime.now(UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")
    return {
        "event": event,
        "component": component,
        "operation": operation,
        "timestamp": ts,
        "data": data,
    }


def is_envelope(obj: Any) -> bool:
    return (
        isinstance(obj, dict)
        and set(obj) == _ENVELOPE_KEYS
        and all(isinstance(obj[k], str) for k in ("event", "component", "operation", "timestamp"))
        and isinstance(obj["data"], dict)
    )


def publish_envelope(event: str, *, component: str, operation: str, data: dict[str, Any]) -> None:
    """Publish an envelope; diagnostics emission never breaks the caller."""
    try:
        get_event_bus().publish(
            event,
            build_envelope(event=event, component=component, operation=operation, data=data),
        )
    except Exception:
        return


def _short_traceback(*, max_lines: int = 20) -> str:
    tb_lines = traceback.format_exc().strip().splitlines()
    return "\n".join(tb_lines[-max_lines:])


@contextmanager
def observe_operation(
    *,
    component: str,
    operation: str,
    base: dict[str, Any],
) -> Iterator[dict[str, Any]]:
    """Wrap an operation with start/end envelopes and a summary log line.

    The yielded dict collects summary fields that are merged into the
    ``operation.end`` payload on success.
    """
    start = time.perf_counter()
    publish_envelope("operation.start", component=component, operation=operation, data=dict(base))

    summary: dict[str, Any] = {}
    try:
        yield summary
    except Exception as e:
        duration_ms = int((time.perf_counter() - start) * 1000)
        end_data = dict(base)
        end_data.update(
            {
                "status": "failed",
                "duration_ms": duration_ms,
                "error_type": type(e).__name__,
                "error_message": str(e),
                "traceback": _short_traceback(),
            }
        )
        publish_envelope("operation.end", component=component, operation=operation, data=end_data)
        _logger.warning(
            f"{operation} status=failed duration_ms={duration_ms} "
            f"rel_path={base.get('rel_path')!r} error_type={type(e).__name__!r}"
        )
        raise
    else:
        duration_ms = int((time.perf_counter() - start) * 1000)
        end_data = dict(base)
        end_data.update(summary)
        end_data.update({"status": "succeeded", "duration_ms": duration_ms})
        publish_envelope("operation.end", component=component, operation=operation, data=end_data)

        parts = [
            "status=succeeded",
            f"duration_ms={duration_ms}",
            f"rel_path={base.get('rel_path')!r}",
        ]
        parts.extend(f"{k}={end_data[k]!r}" for k in _SUMMARY_LOG_KEYS if k in end_data)
        _logger.verbose(f"{operation} " + " ".join(parts))


_SINK_INSTALLED = False


def install_jsonl_sink(*, resolver: ConfigResolver) -> None:
    """Install the JSONL diagnostics sink subscriber.

    Idempotent: registers at most once per process. When diagnostics are
    disabled the subscriber performs no file IO.
    """
    global _SINK_INSTALLED
    if _SINK_INSTALLED:
        return

    def _on_any_event(event: str, data: dict[str, Any]) -> None:
        try:
            if not resolver.resolve_bool("diagnostics.enabled"):
                return
            out_path = Path(resolver.resolve_str("diagnostics.path")).expanduser()
        except ConfigError as e:
            _logger.warning(f"Diagnostics sink disabled: {e.message}")
            return

        payload = (
            data
            if is_envelope(data)
            else build_envelope(event=event, component="unknown", operation="unknown", data=data)
        )
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
            line = json.dumps(payload, ensure_ascii=True, separators=(",", ":"), sort_keys=True)
            with out_path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            _logger.warning(f"Diagnostics sink write failed: {type(e).__name__}: {e}")

    get_event_bus().subscribe_all(_on_any_event)
    _SINK_INSTALLED = True
