"""
Sheet endpoint — speaks the same protocol as the Apps Script web app.

    GET  /exec?action=getNextIndentNumber   → text "I-NNN"
    GET  /exec?action=getMasterData         → {"itemNames": [...], "stockData": {...}}
    GET  /exec?action=getIndentNumbers      → ["I-001", ...]
    GET  /exec                              → ["item name", ...]
    POST /exec  submissionData=<JSON array> → text "Success" | "Error: ..."

Always backed by this instance's local SQLite sheet, so a RemoteSheetStore
can point at another Indent Desk deployment instead of Google Sheets.
Errors come back as "Error: ..." text with HTTP 200, as the web app does.
"""
import json
import logging

from flask import Blueprint, request, jsonify, Response

from ..core import db
from ..core.numbering import next_reference, DEFAULT_REFERENCE
from ..core.security import rate_limit
from ..core.store_client import from_wire

log = logging.getLogger("indent.sheet")

sheet_bp = Blueprint("sheet", __name__)


def _text(body: str):
    return Response(body, mimetype="text/plain")


@sheet_bp.route("/exec", methods=["GET"])
@rate_limit("sheet")
def do_get():
    action = request.args.get("action", "")
    try:
        if action == "getNextIndentNumber":
            return _text(_next_indent_number())
        if action == "getMasterData":
            return jsonify(_master_data())
        if action == "getIndentNumbers":
            return jsonify(db.get_indent_numbers())
        return jsonify(_master_data()["itemNames"])
    except Exception as e:
        log.error("doGet %s failed: %s", action or "itemNames", e, exc_info=True)
        return _text(f"Error: {e}")


@sheet_bp.route("/exec", methods=["POST"])
@rate_limit("sheet")
def do_post():
    try:
        raw = request.form.get("submissionData")
        if raw is None:
            raise ValueError("submissionData is missing")
        items = json.loads(raw)
        if not isinstance(items, list):
            raise ValueError("submissionData must be a JSON array")
        records = [from_wire(it) for it in items if isinstance(it, dict)]
        n = db.append_rows(records)
        log.info("doPost: %d rows appended", n)
        return _text("Success")
    except Exception as e:
        log.error("doPost failed: %s", e)
        return _text(f"Error: {e}")


def _next_indent_number() -> str:
    try:
        return next_reference(db.get_indent_numbers())
    except Exception as e:
        log.error("Error generating indent number: %s", e)
        return DEFAULT_REFERENCE


def _master_data() -> dict:
    try:
        return db.get_master_data()
    except Exception as e:
        log.error("Error getting master data: %s", e)
        return {"itemNames": [], "stockData": {}}
