"""
indent_desk/core/startup_checks.py — Runtime Self-Test on App Boot

Runs when the app starts:

  1. Path resolution — DATA_DIR exists and is writable
  2. Sheet store — the configured backend answers getMasterData
  3. Indent numbering — next number can be computed from the store
  4. Routes — the form, submit and sheet endpoints are registered
"""

import logging

log = logging.getLogger("indent.startup")

REQUIRED_ROUTES = ("/", "/submit", "/exec", "/api/health", "/indent/<indent_number>/pdf")


def run_startup_checks(app=None, ctx=None) -> dict:
    """Run all startup validation checks.

    Returns:
        {"passed": int, "failed": int, "warnings": int, "details": [...]}
    """
    results = {"passed": 0, "failed": 0, "warnings": 0, "details": []}

    def _pass(msg):
        results["passed"] += 1
        results["details"].append(("PASS", msg))
        log.info("✅ %s", msg)

    def _fail(msg):
        results["failed"] += 1
        results["details"].append(("FAIL", msg))
        log.error("❌ STARTUP CHECK FAILED: %s", msg)

    def _warn(msg):
        results["warnings"] += 1
        results["details"].append(("WARN", msg))
        log.warning("⚠️  %s", msg)

    # ── 1. Paths ──────────────────────────────────────────────────────────────
    try:
        from .paths import validate_paths, DATA_DIR
        path_result = validate_paths()
        if path_result["ok"]:
            _pass(f"All paths valid (DATA_DIR={DATA_DIR})")
        else:
            for err in path_result["errors"]:
                _fail(err)
        for warn in path_result.get("warnings", []):
            _warn(warn)
    except Exception as e:
        _fail(f"Path validation error: {e}")

    # ── 2/3. Sheet store ──────────────────────────────────────────────────────
    if ctx is not None:
        status = ctx.status()
        if status["errors"]:
            for err in status["errors"]:
                _warn(f"Sheet store degraded ({status['backend']}): {err}")
        else:
            _pass(f"Sheet store reachable ({status['backend']}): "
                  f"{status['items']} items, {status['indent_rows']} indent rows")
        try:
            _pass(f"Next indent number: {ctx.preview_reference()}")
        except Exception as e:
            _fail(f"Indent numbering error: {e}")

    # ── 4. Routes ─────────────────────────────────────────────────────────────
    if app is not None:
        rules = {r.rule for r in app.url_map.iter_rules()}
        missing = [r for r in REQUIRED_ROUTES if r not in rules]
        if missing:
            _fail(f"Routes not registered: {', '.join(missing)}")
        else:
            _pass(f"{len(rules)} routes registered")

    log.info("Startup checks: %d passed, %d failed, %d warnings",
             results["passed"], results["failed"], results["warnings"])
    return results
