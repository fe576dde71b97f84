"""
Stock ledger lookups for the indent form.

The ledger is a plain {item name: current stock} dict read from the
Master sheet. Nothing here writes to it: the "stock after" shown on the
form is a projection, not a reservation.
"""
import logging

from .numbering import Ok, Skip, ParseResult

log = logging.getLogger("indent.ledger")

# Free-text line with no ledger entry. Always shows 0 / 0.
MISC_ITEM = "Miscellaneous"


def parse_quantity(text) -> ParseResult:
    """Parse a user-typed quantity. Ok(int) or Skip(reason)."""
    if isinstance(text, bool):
        return Skip("not a number")
    if isinstance(text, int):
        return Ok(text)
    if isinstance(text, float):
        return Ok(int(text)) if text.is_integer() else Skip("not a whole number")
    s = str(text or "").strip()
    if not s:
        return Skip("blank")
    try:
        return Ok(int(s))
    except ValueError:
        pass
    try:
        f = float(s)
    except ValueError:
        return Skip("not a number")
    if f.is_integer():
        return Ok(int(f))
    return Skip("not a whole number")


def quantity_or_zero(text) -> int:
    parsed = parse_quantity(text)
    return parsed.value if isinstance(parsed, Ok) else 0


def current_stock_for(ledger: dict, item_name: str) -> int:
    if item_name == MISC_ITEM:
        return 0
    return ledger.get(item_name, 0)


def stock_after(ledger: dict, item_name: str, quantity: int) -> int:
    """Stock left after ``quantity`` is issued. Unknown items start at 0."""
    if item_name == MISC_ITEM:
        return 0
    return ledger.get(item_name, 0) - quantity


def parse_master_payload(payload) -> tuple:
    """Normalize a getMasterData response into (item_names, stock_data).

    Anything malformed degrades to an empty ledger rather than raising.
    """
    if not isinstance(payload, dict):
        log.warning("Master data is %s, not an object; using empty ledger",
                    type(payload).__name__)
        return [], {}
    raw_names = payload.get("itemNames") or []
    raw_stock = payload.get("stockData") or {}
    if not isinstance(raw_names, list) or not isinstance(raw_stock, dict):
        log.warning("Master data has unexpected shape; using empty ledger")
        return [], {}

    names, stock = [], {}
    for raw in raw_names:
        # Sheet cells come back as text or numbers; nested values are junk.
        if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
            continue
        name = str(raw).strip()
        if not name or name in stock:
            continue
        value = raw_stock.get(name)
        if value is None:
            value = raw_stock.get(raw, 0)
        names.append(name)
        stock[name] = quantity_or_zero(value)
    return names, stock
