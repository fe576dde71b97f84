"""
Sheet store backends.

Both backends answer the same four calls the form needs:

    fetch_master_data()     -> {"itemNames": [...], "stockData": {...}}
    fetch_indent_numbers()  -> raw Indent Number column
    fetch_next_reference()  -> "I-NNN"
    submit(records)         -> {"ok": bool, "message"/"error": str, "rows": int}

RemoteSheetStore talks to the Apps Script web app (or another Indent Desk
instance's /exec endpoint) over HTTP. LocalSheetStore goes straight to the
SQLite sheet. Transport problems surface as StoreUnavailable; callers
decide the fallback.
"""
import json
import logging

import requests

from . import db, paths
from .numbering import next_reference, parse_reference, format_reference, Ok

log = logging.getLogger("indent.store")

# snake_case record key → camelCase key in the submissionData JSON
WIRE_KEYS = {
    "timestamp": "timestamp",
    "indent_number": "indentNumber",
    "store_name": "storeName",
    "requested_by": "requestedBy",
    "by_whom_orders": "byWhomOrders",
    "purpose": "purpose",
    "gate_pass": "gatePass",
    "nature_of_demand": "natureOfDemand",
    "project_name": "projectName",
    "store_required_by_date": "storeRequiredByDate",
    "item_name": "itemName",
    "quantity": "quantity",
    "au": "au",
    "remarks": "remarks",
    "current_stock": "currentStock",
    "stock_after_purchase": "stockAfterPurchase",
}


class StoreUnavailable(Exception):
    """The sheet store could not be reached or answered with garbage."""


class ActionUnsupported(StoreUnavailable):
    """The web app is reachable but does not implement the requested action."""


def to_wire(record: dict) -> dict:
    return {wire: record.get(key, "") for key, wire in WIRE_KEYS.items()}


def from_wire(item: dict) -> dict:
    rec = {key: item.get(wire, "") for key, wire in WIRE_KEYS.items()}
    rec["gate_pass"] = item.get("gatePass") or ""
    rec["current_stock"] = item.get("currentStock") or 0
    rec["stock_after_purchase"] = item.get("stockAfterPurchase") or 0
    return rec


# ═══════════════════════════════════════════════════════════════════════
# Local (SQLite) backend
# ═══════════════════════════════════════════════════════════════════════

class LocalSheetStore:
    name = "local"

    def fetch_master_data(self) -> dict:
        return db.get_master_data()

    def fetch_item_names(self) -> list:
        return db.get_master_data()["itemNames"]

    def fetch_indent_numbers(self) -> list:
        return db.get_indent_numbers()

    def fetch_next_reference(self) -> str:
        return next_reference(db.get_indent_numbers())

    def submit(self, records: list) -> dict:
        try:
            n = db.append_rows(records)
        except Exception as e:
            log.error("Local submit failed: %s", e, exc_info=True)
            return {"ok": False, "error": f"Error: {e}", "rows": 0}
        return {"ok": True, "message": "Success", "rows": n}


# ═══════════════════════════════════════════════════════════════════════
# Remote (HTTP) backend
# ═══════════════════════════════════════════════════════════════════════

class RemoteSheetStore:
    name = "remote"

    def __init__(self, url: str, timeout: float = 15, session=None):
        self.url = url
        self.timeout = timeout
        self.http = session or requests.Session()

    def _get(self, action: str = None):
        params = {"action": action} if action else {}
        try:
            r = self.http.get(self.url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise StoreUnavailable(f"GET {action or 'itemNames'}: {e}") from e
        if r.status_code != 200:
            raise StoreUnavailable(f"GET {action or 'itemNames'}: HTTP {r.status_code}")
        return r

    def _get_json(self, action: str = None):
        r = self._get(action)
        text = r.text.strip()
        if text.startswith("Error"):
            raise StoreUnavailable(f"{action}: {text[:200]}")
        try:
            return json.loads(text)
        except ValueError as e:
            raise StoreUnavailable(f"{action}: response is not JSON") from e

    def fetch_master_data(self) -> dict:
        data = self._get_json("getMasterData")
        if not isinstance(data, dict):
            raise StoreUnavailable("getMasterData: response is not an object")
        return data

    def fetch_item_names(self) -> list:
        data = self._get_json()
        return data if isinstance(data, list) else []

    def fetch_indent_numbers(self) -> list:
        """Raw Indent Number column.

        A web app deployed without the getIndentNumbers action falls through
        to its default branch and answers with the item names instead.
        """
        data = self._get_json("getIndentNumbers")
        if not isinstance(data, list):
            raise StoreUnavailable("getIndentNumbers: response is not a list")
        if data and data == self.fetch_item_names():
            raise ActionUnsupported(
                "getIndentNumbers: web app returned item names; action not deployed")
        return data

    def fetch_next_reference(self) -> str:
        """Server-computed number; recomputed locally if the server's is malformed."""
        text = self._get("getNextIndentNumber").text.strip()
        parsed = parse_reference(text)
        if isinstance(parsed, Ok) and text == format_reference(parsed.value):
            return text
        log.warning("getNextIndentNumber returned %r; computing from raw numbers",
                    text[:40])
        return next_reference(self.fetch_indent_numbers())

    def submit(self, records: list) -> dict:
        payload = json.dumps([to_wire(r) for r in records], default=str)
        try:
            r = self.http.post(self.url, data={"submissionData": payload},
                               timeout=self.timeout)
        except requests.RequestException as e:
            raise StoreUnavailable(f"POST submissionData: {e}") from e
        text = (r.text or "").strip()
        if r.status_code != 200 or text.startswith("Error"):
            return {"ok": False, "error": text or f"HTTP {r.status_code}", "rows": 0}
        return {"ok": True, "message": text or "Success", "rows": len(records)}


def get_store(config: dict):
    """Build the backend named in config["store"]."""
    store_cfg = config.get("store", {})
    if store_cfg.get("backend") == "remote":
        log.info("Sheet store: remote %s", store_cfg["url"])
        return RemoteSheetStore(store_cfg["url"], timeout=store_cfg.get("timeout", 15))
    log.info("Sheet store: local %s", paths.DB_PATH)
    return LocalSheetStore()
