"""
trace.py — per-request workflow traces

Each submit, snapshot refresh and PDF export records a Trace: a list of
timestamped steps plus a final status (ok / fail / warn). The newest
MAX_TRACES are kept in memory and served from /api/admin/traces.

    t = Trace("indent_submit", store="Palm Walk", lines=3)
    t.step("Rows appended", indent_number="I-014", rows=3)
    t.ok("Snapshot refreshed")

A finished trace also emits one log line carrying indent_number when the
trace has one, so the JSON log and the trace list can be joined.
"""

import time
import uuid
import logging
import threading
from collections import OrderedDict
from datetime import datetime

log = logging.getLogger("indent.trace")

MAX_TRACES = 200

_lock = threading.Lock()
_store = OrderedDict()   # id -> Trace, oldest first


def _remember(trace):
    with _lock:
        _store[trace.id] = trace
        while len(_store) > MAX_TRACES:
            _store.popitem(last=False)


class Trace:

    def __init__(self, workflow: str, **context):
        self.id = "tr_" + uuid.uuid4().hex[:8]
        self.workflow = workflow
        self.context = context
        self.steps = []
        self.status = "running"
        self.started_at = datetime.now().isoformat(timespec="seconds")
        self.finished_at = None
        self.duration_ms = None
        self._t0 = time.monotonic()
        _remember(self)

    def _elapsed(self) -> int:
        return round((time.monotonic() - self._t0) * 1000)

    def step(self, message: str, **data):
        entry = {"t": self._elapsed(), "msg": message}
        if data:
            entry["data"] = data
            if "indent_number" in data:
                self.context.setdefault("indent_number", data["indent_number"])
        self.steps.append(entry)
        return self

    def warn(self, message: str, **data):
        """Flag the trace without ending it."""
        self.step("WARN: " + message, **data)
        if self.status == "running":
            self.status = "warn"
        return self

    def ok(self, message: str = "Complete", **data):
        self.step(message, **data)
        if self.status == "running":
            self.status = "ok"
        return self._finish()

    def fail(self, message: str, **data):
        self.step("FAIL: " + message, **data)
        self.status = "fail"
        return self._finish()

    def _finish(self):
        self.finished_at = datetime.now().isoformat(timespec="seconds")
        self.duration_ms = self._elapsed()
        level = logging.WARNING if self.status == "fail" else logging.INFO
        extra = {"duration_ms": self.duration_ms}
        if "indent_number" in self.context:
            extra["indent_number"] = self.context["indent_number"]
        log.log(level, "[%s] %s %s: %s", self.workflow, self.id, self.status,
                self.steps[-1]["msg"], extra=extra)
        return self

    def to_dict(self) -> dict:
        last = self.steps[-1]["msg"] if self.steps else "no steps"
        return {
            "id": self.id,
            "workflow": self.workflow,
            "status": self.status,
            "context": self.context,
            "steps": self.steps,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "duration_ms": self.duration_ms,
            "summary": f"[{self.workflow}] {last}",
        }


def get_traces(workflow=None, status=None, limit=50) -> list:
    """Newest first, optionally filtered."""
    with _lock:
        traces = list(reversed(_store.values()))
    out = []
    for t in traces:
        if len(out) >= limit:
            break
        if workflow and t.workflow != workflow:
            continue
        if status and t.status != status:
            continue
        out.append(t.to_dict())
    return out


def get_trace(trace_id: str):
    with _lock:
        t = _store.get(trace_id)
    return t.to_dict() if t else None


def clear_traces():
    with _lock:
        _store.clear()
