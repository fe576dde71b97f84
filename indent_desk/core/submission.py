"""
Indent submission: validate the form, build item lines, flatten to sheet
rows, hand them to the store, and keep a local log of what was sent.

One submission = one indent number shared by N rows, one per item line.
The log (indent_log.json) backs the receipt page and the PDF export, so
both work the same for the local and remote backends.
"""
import os
import json
import logging
from datetime import datetime

from dateutil import parser as date_parser

from . import paths
from .ledger import parse_quantity, current_stock_for, stock_after
from .numbering import Ok
from .store_client import StoreUnavailable

log = logging.getLogger("indent.submit")

# (field, label) for request-level fields, in form order
META_FIELDS = [
    ("store_name", "Store Name"),
    ("requested_by", "Requested By"),
    ("by_whom_orders", "By Whom Orders"),
    ("purpose", "Purpose"),
    ("gate_pass", "Gate Pass"),
    ("nature_of_demand", "Nature of Demand"),
    ("project_name", "Project Name"),
    ("store_required_by_date", "Store Required By Date"),
]
REQUIRED_META = ("store_name", "requested_by", "store_required_by_date")
LINE_FIELDS = ("item_name", "quantity", "au", "remarks")


def clean_meta(form: dict) -> dict:
    return {k: str(form.get(k) or "").strip() for k, _ in META_FIELDS}


def clean_lines(raw_lines: list) -> list:
    """Strip every field and drop lines where everything is blank."""
    lines = []
    for raw in raw_lines or []:
        line = {k: str(raw.get(k) or "").strip() for k in LINE_FIELDS}
        if any(line.values()):
            lines.append(line)
    return lines


def validate_request(meta: dict, lines: list) -> list:
    """Presence checks. Returns a list of error strings; empty means OK."""
    labels = dict(META_FIELDS)
    errors = [f"{labels[k]} is required" for k in REQUIRED_META if not meta.get(k)]
    if not lines:
        errors.append("Add at least one item")
    for n, line in enumerate(lines, 1):
        if not line.get("item_name"):
            errors.append(f"Item {n}: Item Name is required")
        qty = parse_quantity(line.get("quantity"))
        if not isinstance(qty, Ok) or qty.value <= 0:
            errors.append(f"Item {n}: Quantity must be a whole number above 0")
    return errors


def build_item_line(ledger: dict, line: dict) -> dict:
    """RequestItemLine: the typed line plus its stock snapshot."""
    qty = parse_quantity(line.get("quantity"))
    quantity = qty.value if isinstance(qty, Ok) else 0
    name = line.get("item_name", "")
    return {
        "item_name": name,
        "quantity": quantity,
        "au": line.get("au", ""),
        "remarks": line.get("remarks", ""),
        "current_stock": current_stock_for(ledger, name),
        "stock_after_purchase": stock_after(ledger, name, quantity),
    }


def build_records(meta: dict, item_lines: list, indent_number: str,
                  timestamp: str = None) -> list:
    """Flatten request metadata × item lines into sheet rows."""
    timestamp = timestamp or datetime.now().isoformat(timespec="seconds")
    return [dict(meta, timestamp=timestamp, indent_number=indent_number, **line)
            for line in item_lines]


def submit_indent(ctx, form: dict, raw_lines: list) -> dict:
    """Validate → allocate indent number → append rows → log.

    Returns {"ok", "indent_number", "rows", "errors"/"error"}. Validation
    failures return before the store is touched.
    """
    meta = clean_meta(form)
    lines = clean_lines(raw_lines)
    errors = validate_request(meta, lines)
    if errors:
        return {"ok": False, "errors": errors, "error": "; ".join(errors), "rows": 0}

    ledger = ctx.ledger
    item_lines = [build_item_line(ledger, ln) for ln in lines]
    indent_number = ctx.allocate_reference()
    records = build_records(meta, item_lines, indent_number)

    try:
        result = ctx.store.submit(records)
    except StoreUnavailable as e:
        log.error("Submit %s failed: %s", indent_number, e)
        return {"ok": False, "indent_number": indent_number, "rows": 0,
                "error": f"Could not reach the sheet: {e}"}

    if not result.get("ok"):
        log.error("Submit %s rejected: %s", indent_number, result.get("error"))
        return {"ok": False, "indent_number": indent_number, "rows": 0,
                "error": result.get("error", "Submission failed")}

    out = {"ok": True, "indent_number": indent_number, "rows": len(records),
           "message": result.get("message", "Success")}
    # Rows are already appended past this point.
    try:
        out["submission"] = _log_submission(meta, item_lines, indent_number,
                                            records[0]["timestamp"],
                                            backend=getattr(ctx.store, "name", ""))
    except OSError as e:
        log.error("Indent %s submitted but not logged: %s", indent_number, e,
                  extra={"indent_number": indent_number})
        out["submission"] = None
        out["warning"] = ("Saved to the sheet, but the local copy could not be "
                          "written; receipt and PDF are unavailable for this indent.")
    log.info("Indent %s submitted: %d rows for %s",
             indent_number, len(records), meta["store_name"],
             extra={"indent_number": indent_number, "items": len(records)})
    return out


# ═══════════════════════════════════════════════════════════════════════
# Submission log
# ═══════════════════════════════════════════════════════════════════════

def _log_path():
    return paths.SUBMISSIONS_LOG_PATH


def get_all_submissions() -> list:
    try:
        with open(_log_path()) as f:
            return json.load(f)
    except (FileNotFoundError, json.JSONDecodeError):
        return []


def _save_all_submissions(entries: list):
    path = _log_path()
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w") as f:
        json.dump(entries, f, indent=2, default=str)


def _log_submission(meta, item_lines, indent_number, timestamp, backend="") -> dict:
    entry = dict(meta, indent_number=indent_number, timestamp=timestamp,
                 backend=backend, items=item_lines)
    entries = get_all_submissions()
    entries.append(entry)
    _save_all_submissions(entries[-1000:])
    return entry


def get_submission(indent_number: str):
    """Most recent logged submission with this number (numbers can repeat)."""
    for entry in reversed(get_all_submissions()):
        if entry.get("indent_number") == indent_number:
            return entry
    return None


def get_recent_submissions(limit: int = 20) -> list:
    return list(reversed(get_all_submissions()))[:limit]


def format_date(value: str, fmt: str = "%d %b %Y") -> str:
    """Render a form date for display; unparseable text passes through."""
    if not value:
        return ""
    try:
        return date_parser.parse(value).strftime(fmt)
    except (ValueError, OverflowError):
        return value
