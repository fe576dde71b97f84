"""
Indent Desk — form routes

    GET  /                          indent form
    POST /submit                    validate → allocate number → append rows
    GET  /indent/<n>                receipt
    GET  /indent/<n>/pdf            PDF download
    GET  /api/master                ledger snapshot
    GET  /api/next-reference        next indent number
    GET  /api/stock-after           live stock preview for one line
    POST /api/refresh               re-fetch ledger + indent numbers
    GET  /api/health                store / snapshot status
    GET  /api/admin/traces[/<id>]   workflow traces
"""
import os
import re
import time
import logging
import functools

from flask import (Blueprint, current_app, request, redirect, url_for, flash,
                   jsonify, render_template_string, send_file, Response, g)

from ..core import paths
from ..core.ledger import MISC_ITEM, parse_quantity, quantity_or_zero
from ..core.numbering import Ok
from ..core.submission import (submit_indent, get_submission, get_recent_submissions,
                               LINE_FIELDS, META_FIELDS)
from ..core.security import rate_limit
from ..forms.indent_pdf import generate_indent_pdf
from .templates import PAGE_FORM, PAGE_RECEIPT
from .trace import Trace, get_traces, get_trace

log = logging.getLogger("indent.dashboard")

bp = Blueprint("dashboard", __name__)


# ── Request-level structured logging ────────────────────────────────────────
@bp.before_app_request
def _log_request_start():
    g._start_time = time.time()


@bp.after_app_request
def _log_request_end(response):
    if hasattr(g, "_start_time"):
        duration_ms = round((time.time() - g._start_time) * 1000, 1)
        if request.path != "/api/health":
            log.info("%s %s → %d (%.0fms)",
                     request.method, request.path, response.status_code, duration_ms,
                     extra={"route": request.path, "method": request.method,
                            "duration_ms": duration_ms})
    return response


# ═══════════════════════════════════════════════════════════════════════
# Password Protection
# ═══════════════════════════════════════════════════════════════════════

def _cfg() -> dict:
    return current_app.config["INDENT"]


def _ctx():
    return current_app.extensions["indent_context"]


def check_auth(username, password):
    cfg = _cfg()
    return username == cfg["dash_user"] and password == cfg["dash_pass"]


def auth_required(f):
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        auth = request.authorization
        if not auth or not check_auth(auth.username, auth.password):
            return Response(
                "Indent Desk — Login Required",
                401, {"WWW-Authenticate": 'Basic realm="Indent Desk"'})
        return f(*args, **kwargs)
    return decorated


# ═══════════════════════════════════════════════════════════════════════
# Form pages
# ═══════════════════════════════════════════════════════════════════════

def _form_lines():
    """Zip the repeated item_name / quantity / au / remarks inputs into lines."""
    columns = {k: request.form.getlist(k) for k in LINE_FIELDS}
    n = max((len(v) for v in columns.values()), default=0)
    return [{k: (columns[k][i] if i < len(columns[k]) else "") for k in LINE_FIELDS}
            for i in range(n)]


def _render_form(form=None, lines=None, status_code=200):
    ctx = _ctx()
    cfg = _cfg()
    item_names, ledger, _ = ctx.snapshot()
    return render_template_string(
        PAGE_FORM,
        company=cfg["company"],
        stores=cfg["stores"],
        units=cfg["units"],
        status=ctx.status(),
        form=form or {},
        lines=lines or [{}],
        item_names=item_names,
        stock_data=ledger,
        misc_item=MISC_ITEM,
        next_reference=ctx.allocate_reference(),
        recent=get_recent_submissions(10),
    ), status_code


@bp.route("/")
@auth_required
def home():
    return _render_form()


@bp.route("/submit", methods=["POST"])
@auth_required
@rate_limit("submit")
def submit():
    form = {k: request.form.get(k, "") for k, _ in META_FIELDS}
    lines = _form_lines()
    t = Trace("indent_submit", store=form.get("store_name", ""), lines=len(lines))

    result = submit_indent(_ctx(), form, lines)

    if result.get("errors"):
        t.fail("Validation", errors=result["errors"])
        for err in result["errors"]:
            flash(err, "error")
        return _render_form(form, lines or [{}], 400)

    if not result["ok"]:
        t.fail("Store rejected submission", error=result.get("error", ""),
               indent_number=result.get("indent_number"))
        flash(f"Submission failed: {result.get('error', 'unknown error')}", "error")
        return _render_form(form, lines, 502)

    t.step("Rows appended", indent_number=result["indent_number"], rows=result["rows"])
    _ctx().refresh()
    t.ok("Snapshot refreshed")
    flash(f"Indent {result['indent_number']} submitted ({result['rows']} item"
          f"{'s' if result['rows'] != 1 else ''})", "success")
    if result.get("warning"):
        t.warn("Submission log", indent_number=result["indent_number"])
        flash(result["warning"], "warn")
        return redirect(url_for("dashboard.home"))
    return redirect(url_for("dashboard.indent_detail",
                            indent_number=result["indent_number"]))


@bp.route("/indent/<indent_number>")
@auth_required
def indent_detail(indent_number):
    sub = get_submission(indent_number)
    if not sub:
        flash(f"Indent {indent_number} not found", "error")
        return redirect(url_for("dashboard.home"))
    return render_template_string(
        PAGE_RECEIPT, sub=sub, fields=META_FIELDS,
        company=_cfg()["company"], status=_ctx().status())


@bp.route("/indent/<indent_number>/pdf")
@auth_required
@rate_limit("pdf")
def indent_pdf(indent_number):
    sub = get_submission(indent_number)
    if not sub:
        return jsonify({"ok": False, "error": f"Indent {indent_number} not found"}), 404
    safe = re.sub(r"[^A-Za-z0-9_-]", "_", indent_number)
    out = os.path.join(paths.OUTPUT_DIR, f"Indent_{safe}.pdf")
    t = Trace("indent_pdf", indent_number=indent_number)
    try:
        result = generate_indent_pdf(sub, out, company=_cfg()["company"])
    except Exception as e:
        log.error("PDF %s failed: %s", indent_number, e, exc_info=True)
        t.fail("PDF generation", error=str(e))
        return jsonify({"ok": False, "error": f"PDF generation failed: {e}"}), 500
    t.ok("PDF written", pages=result["pages"])
    return send_file(result["path"], mimetype="application/pdf",
                     as_attachment=True, download_name=f"Indent_{safe}.pdf")


# ═══════════════════════════════════════════════════════════════════════
# JSON API
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/api/master")
@auth_required
def api_master():
    item_names, ledger, _ = _ctx().snapshot()
    return jsonify({"ok": True, "itemNames": item_names, "stockData": ledger})


@bp.route("/api/next-reference")
@auth_required
def api_next_reference():
    ctx = _ctx()
    return jsonify({"ok": True, "indent_number": ctx.allocate_reference(),
                    "cached": ctx.preview_reference()})


@bp.route("/api/stock-after")
@auth_required
def api_stock_after():
    ctx = _ctx()
    item = (request.args.get("item") or "").strip()
    raw_qty = request.args.get("qty", "")
    parsed = parse_quantity(raw_qty)
    qty = quantity_or_zero(raw_qty)
    return jsonify({
        "ok": True,
        "item": item,
        "quantity": qty,
        "quantity_parsed": isinstance(parsed, Ok),
        "current_stock": ctx.current_stock(item),
        "stock_after": ctx.stock_after(item, qty),
    })


@bp.route("/api/refresh", methods=["POST"])
@auth_required
def api_refresh():
    t = Trace("snapshot_refresh")
    status = _ctx().refresh()
    if status["errors"]:
        t.warn("Degraded", errors=status["errors"])
    t.ok("Refreshed", items=status["items"])
    return jsonify({"ok": not status["errors"], **status})


@bp.route("/api/health")
def api_health():
    ctx = _ctx()
    status = ctx.status()
    body = {"status": "degraded" if status["errors"] else "ok", "store": status}
    if status["backend"] == "local":
        from ..core.db import get_db_stats
        try:
            body["sheet"] = get_db_stats()
        except Exception as e:
            body["status"] = "degraded"
            body["sheet_error"] = str(e)
    return jsonify(body)


@bp.route("/api/admin/traces")
@auth_required
def api_traces():
    return jsonify({"ok": True, "traces": get_traces(
        workflow=request.args.get("workflow"),
        status=request.args.get("status"),
        limit=request.args.get("limit", 50, type=int))})


@bp.route("/api/admin/traces/<trace_id>")
@auth_required
def api_trace_detail(trace_id):
    t = get_trace(trace_id)
    if not t:
        return jsonify({"ok": False, "error": "Trace not found"}), 404
    return jsonify({"ok": True, "trace": t})
