"""
FormContext — the form's read snapshot of the sheet store.

Holds the ledger (item names + stock) and the Indent Number column as of
the last refresh(). refresh() fetches both first and only then swaps them
in under the lock, so a reader sees either the old snapshot or the new one.
"""
import logging
import threading
from datetime import datetime

from .ledger import parse_master_payload, stock_after, current_stock_for
from .numbering import next_reference, DEFAULT_REFERENCE
from .store_client import StoreUnavailable, ActionUnsupported

log = logging.getLogger("indent.session")


class FormContext:

    def __init__(self, store):
        self.store = store
        self._lock = threading.Lock()
        self._item_names = []
        self._ledger = {}
        self._references = []
        self.refreshed_at = None
        self.errors = []

    def refresh(self) -> dict:
        """Re-fetch ledger and indent numbers. Never raises on store failure."""
        errors = []
        try:
            names, ledger = parse_master_payload(self.store.fetch_master_data())
        except StoreUnavailable as e:
            log.warning("Ledger fetch failed, using empty ledger: %s", e)
            errors.append(f"ledger: {e}")
            names, ledger = [], {}
        try:
            references = list(self.store.fetch_indent_numbers())
        except ActionUnsupported as e:
            # Numbers still come from getNextIndentNumber; only the cache is empty.
            log.info("Indent number column not available: %s", e)
            references = []
        except StoreUnavailable as e:
            log.warning("Indent number fetch failed: %s", e)
            errors.append(f"indent numbers: {e}")
            references = []

        with self._lock:
            self._item_names = names
            self._ledger = ledger
            self._references = references
            self.refreshed_at = datetime.now().isoformat()
            self.errors = errors
        log.info("Form snapshot refreshed: %d items, %d indent rows%s",
                 len(names), len(references), " (degraded)" if errors else "")
        return self.status()

    def snapshot(self) -> tuple:
        """(item_names, ledger, references) copies taken under the lock."""
        with self._lock:
            return list(self._item_names), dict(self._ledger), list(self._references)

    @property
    def item_names(self) -> list:
        return self.snapshot()[0]

    @property
    def ledger(self) -> dict:
        return self.snapshot()[1]

    def stock_after(self, item_name: str, quantity: int) -> int:
        return stock_after(self.ledger, item_name, quantity)

    def current_stock(self, item_name: str) -> int:
        return current_stock_for(self.ledger, item_name)

    def preview_reference(self) -> str:
        """Client-computed next number from the cached column."""
        return next_reference(self.snapshot()[2])

    def allocate_reference(self) -> str:
        """Ask the store for the next number now; I-001 if it can't answer."""
        try:
            return self.store.fetch_next_reference()
        except StoreUnavailable as e:
            log.warning("Next indent number unavailable, using %s: %s",
                        DEFAULT_REFERENCE, e)
            return DEFAULT_REFERENCE

    def status(self) -> dict:
        with self._lock:
            return {
                "backend": getattr(self.store, "name", "unknown"),
                "items": len(self._item_names),
                "indent_rows": len(self._references),
                "refreshed_at": self.refreshed_at,
                "errors": list(self.errors),
            }
