"""
Tests for the ambient pieces: throttling, traces, logging, startup checks.
"""
import json
import logging

from indent_desk.api import trace
from indent_desk.core.security import RateLimiter, Tier, rate_limit, limiter
from indent_desk.core.startup_checks import run_startup_checks
from logging_config import JSONFormatter, HumanFormatter, setup_logging


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


# ═══════════════════════════════════════════════════════════════════════════════
# Throttling
# ═══════════════════════════════════════════════════════════════════════════════

class TestRateLimiter:

    def test_burst_then_blocked(self):
        rl = RateLimiter(clock=FakeClock())
        tier = Tier(3, 1.0)
        assert [rl.allow("ip:submit", tier) for _ in range(4)] == [True, True, True, False]

    def test_refills_over_time(self):
        clock = FakeClock()
        rl = RateLimiter(clock=clock)
        tier = Tier(1, 0.5)
        assert rl.allow("k", tier)
        assert not rl.allow("k", tier)
        clock.now += 2
        assert rl.allow("k", tier)

    def test_keys_independent(self):
        rl = RateLimiter(clock=FakeClock())
        tier = Tier(1, 0.0)
        assert rl.allow("a", tier)
        assert rl.allow("b", tier)
        assert not rl.allow("a", tier)

    def test_idle_buckets_swept(self):
        clock = FakeClock()
        rl = RateLimiter(clock=clock, sweep_every=3)
        tier = Tier(2, 1.0)
        rl.allow("a", tier)
        rl.allow("b", tier)
        assert len(rl) == 2
        clock.now += 10
        rl.allow("c", tier)
        assert len(rl) == 1

    def test_busy_buckets_kept(self):
        clock = FakeClock()
        rl = RateLimiter(clock=clock, sweep_every=3)
        tier = Tier(5, 0.0)
        rl.allow("a", tier)
        rl.allow("b", tier)
        rl.allow("c", tier)
        assert len(rl) == 3
        assert rl.allow("a", tier)

    def test_route_returns_429(self, app, monkeypatch):
        monkeypatch.setenv("DISABLE_RATE_LIMIT", "false")
        monkeypatch.setattr(limiter, "_clock", FakeClock())
        limiter.reset()
        statuses = [app.test_client().get("/exec?action=getIndentNumbers").status_code
                    for _ in range(31)]
        limiter.reset()
        assert statuses[:30] == [200] * 30
        assert statuses[30] == 429

    def test_decorator_passthrough_when_disabled(self, app):
        @rate_limit("submit")
        def view():
            return "ok"
        with app.test_request_context("/"):
            assert all(view() == "ok" for _ in range(50))


# ═══════════════════════════════════════════════════════════════════════════════
# Traces
# ═══════════════════════════════════════════════════════════════════════════════

class TestTrace:

    def test_lifecycle(self):
        t = trace.Trace("indent_submit", store="Garden")
        t.step("Rows appended", indent_number="I-004", rows=2)
        t.ok("Done")
        d = trace.get_trace(t.id)
        assert d["status"] == "ok"
        assert d["context"]["indent_number"] == "I-004"
        assert [s["msg"] for s in d["steps"]] == ["Rows appended", "Done"]
        assert d["duration_ms"] is not None

    def test_warn_survives_ok(self):
        t = trace.Trace("snapshot_refresh").warn("Degraded").ok("Refreshed")
        assert t.status == "warn"

    def test_fail(self):
        t = trace.Trace("indent_pdf").fail("boom")
        assert trace.get_trace(t.id)["steps"][-1]["msg"] == "FAIL: boom"

    def test_filter_and_order(self):
        a = trace.Trace("indent_submit").ok()
        trace.Trace("indent_pdf").ok()
        b = trace.Trace("indent_submit").fail("x")
        assert [d["id"] for d in trace.get_traces(workflow="indent_submit")] == [b.id, a.id]
        assert [d["id"] for d in trace.get_traces(status="fail")] == [b.id]
        assert len(trace.get_traces(limit=2)) == 2

    def test_capped(self):
        for _ in range(trace.MAX_TRACES + 5):
            trace.Trace("indent_submit")
        assert len(trace.get_traces(limit=1000)) == trace.MAX_TRACES


# ═══════════════════════════════════════════════════════════════════════════════
# Logging
# ═══════════════════════════════════════════════════════════════════════════════

def _record(msg="Indent %s submitted", args=("I-007",), **extra):
    rec = logging.LogRecord("indent.submit", logging.INFO, __file__, 10, msg, args, None)
    for k, v in extra.items():
        setattr(rec, k, v)
    return rec


class TestLogging:

    def test_json_formatter_extras(self):
        out = json.loads(JSONFormatter().format(_record(indent_number="I-007", items=3)))
        assert out["msg"] == "Indent I-007 submitted"
        assert out["indent_number"] == "I-007"
        assert out["items"] == 3
        assert out["level"] == "INFO"

    def test_human_formatter(self):
        line = HumanFormatter().format(_record(indent_number="I-007"))
        assert "indent.submit: Indent I-007 submitted" in line
        assert "indent=I-007" in line

    def test_setup_is_idempotent(self):
        setup_logging(level="DEBUG")
        setup_logging(level="INFO")
        ours = [h for h in logging.getLogger().handlers
                if getattr(h, "_indent_handler", False)]
        assert len(ours) == 2

    def test_log_file_written(self, temp_data_dir):
        import os
        setup_logging()
        logging.getLogger("indent.test").info("hello file")
        for h in logging.getLogger().handlers:
            h.flush()
        path = os.path.join(temp_data_dir, "logs", "indent.log")
        with open(path) as f:
            assert "hello file" in f.read()


# ═══════════════════════════════════════════════════════════════════════════════
# Startup checks
# ═══════════════════════════════════════════════════════════════════════════════

class TestStartupChecks:

    def test_all_pass_on_local_app(self, app):
        ctx = app.extensions["indent_context"]
        result = run_startup_checks(app, ctx)
        assert result["failed"] == 0
        assert any("Next indent number: I-001" in msg for _, msg in result["details"])

    def test_missing_route_fails(self):
        from flask import Flask
        result = run_startup_checks(Flask("bare"))
        assert result["failed"] == 1
