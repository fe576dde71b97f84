"""
indent_desk/core/db.py — SQLite Sheet Store

Local stand-in for the Google Sheet the form was built against. Two
"sheets", each a table:

    issue_requests — one row per submitted item line (16 sheet columns)
    master_items   — item name → current stock (the ledger)

Rows are only ever appended. Nothing here decrements stock on submit;
the Master sheet is maintained by hand in the workbook.
"""

import os
import sqlite3
import logging
import threading
from contextlib import contextmanager

from . import paths

log = logging.getLogger("indent.db")

_db_lock = threading.Lock()

# (column, sheet header) in sheet order
ISSUE_COLUMNS = [
    ("timestamp",              "Timestamp"),
    ("indent_number",          "Indent Number"),
    ("store_name",             "Store Name"),
    ("requested_by",           "Requested By"),
    ("by_whom_orders",         "By Whom Orders"),
    ("purpose",                "Purpose"),
    ("gate_pass",              "Gate Pass"),
    ("nature_of_demand",       "Nature of Demand"),
    ("project_name",           "Project Name"),
    ("store_required_by_date", "Store Required By Date"),
    ("item_name",              "Item Name"),
    ("quantity",               "Quantity"),
    ("au",                     "A/U"),
    ("remarks",                "Remarks"),
    ("current_stock",          "Current Stock"),
    ("stock_after_purchase",   "Stock After Purchase"),
]
ISSUE_HEADERS = [h for _, h in ISSUE_COLUMNS]

# Sample ledger seeded into an empty Master sheet
SAMPLE_MASTER = [
    ("Name\n(B-C-D)", 10),
    ("CATEGORY 1 Item Name 1 6*4 MM", 20),
    ("CATEGORY 1 Item Name 2 90 MM", 30),
    ("CATEGORY 1 Item Name 3 50*32 MM", 40),
    ("PVC Item Name 4 25 MM", 50),
    ("PVC Item Name 5 32 MM", 60),
    ("CATEGORY 3 Item Name 6 90 MM", 70),
    ("CATEGORY 3 Item Name 7 6*4\"", 80),
    ("CATEGORY 3 Item Name 8 90 MM", 90),
    ("PVC Item Name 9 50*32 MM", 100),
    ("PVC Item Name 10 25 MM", 110),
    ("PVC Item Name 11 32 MM", 120),
    ("PVC Item Name 12 90 MM", 130),
    ("PVC Item Name 13 6*4\"", 140),
    ("CATEGORY 3 Item Name 14 90 MM", 150),
    ("CATEGORY 3 Item Name 15 50*32 MM", 160),
    ("CATEGORY 3 Item Name 16 25 MM", 170),
    ("CATEGORY 3 Item Name 17 32 MM", 180),
    ("CATEGORY 3 Item Name 18 90 MM", 190),
    ("CATEGORY 4 Item Name 19 6*4\"", 200),
    ("CATEGORY 4 Item Name 20 90 MM", 210),
    ("CATEGORY 4 Item Name 21 50*32 MM", 220),
    ("CATEGORY 4 Item Name 22 25 MM", 230),
    ("CATEGORY 1 Item Name 23 32 MM", 240),
    ("CATEGORY 1 Item Name 24 90 MM", 250),
    ("CATEGORY 1 SKU NAME 88 MM", 260),
]


# ── Connection factory ────────────────────────────────────────────────────────
@contextmanager
def get_db():
    """Thread-safe SQLite connection in WAL mode."""
    with _db_lock:
        os.makedirs(os.path.dirname(paths.DB_PATH) or ".", exist_ok=True)
        conn = sqlite3.connect(paths.DB_PATH, timeout=30, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


# ── Schema ────────────────────────────────────────────────────────────────────
SCHEMA = """
CREATE TABLE IF NOT EXISTS issue_requests (
    id                      INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp               TEXT,
    indent_number           TEXT,
    store_name              TEXT,
    requested_by            TEXT,
    by_whom_orders          TEXT,
    purpose                 TEXT,
    gate_pass               TEXT DEFAULT '',
    nature_of_demand        TEXT,
    project_name            TEXT,
    store_required_by_date  TEXT,
    item_name               TEXT,
    quantity                INTEGER,
    au                      TEXT,
    remarks                 TEXT,
    current_stock           INTEGER DEFAULT 0,
    stock_after_purchase    INTEGER DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_issue_indent ON issue_requests(indent_number);

CREATE TABLE IF NOT EXISTS master_items (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    item_name       TEXT UNIQUE NOT NULL,
    current_stock   INTEGER DEFAULT 0
);
"""


def init_db():
    """Create both sheets if they don't exist. Safe to call multiple times."""
    with get_db() as conn:
        conn.executescript(SCHEMA)
    log.info("Sheet DB initialized at %s", paths.DB_PATH)
    return True


# ── Master sheet ──────────────────────────────────────────────────────────────
def seed_master_items(items=None) -> int:
    """Fill an empty Master sheet with sample rows. Returns rows added."""
    items = SAMPLE_MASTER if items is None else items
    with get_db() as conn:
        count = conn.execute("SELECT COUNT(*) FROM master_items").fetchone()[0]
        if count:
            return 0
        conn.executemany(
            "INSERT OR IGNORE INTO master_items (item_name, current_stock) VALUES (?,?)",
            list(items))
    log.info("Seeded Master sheet with %d sample items", len(items))
    return len(items)


def upsert_master_item(item_name: str, current_stock: int) -> bool:
    name = (item_name or "").strip()
    if not name:
        return False
    with get_db() as conn:
        conn.execute("""
            INSERT INTO master_items (item_name, current_stock) VALUES (?,?)
            ON CONFLICT(item_name) DO UPDATE SET current_stock=excluded.current_stock
        """, (name, current_stock))
    return True


def get_master_data() -> dict:
    """Ledger in getMasterData shape: {"itemNames": [...], "stockData": {...}}."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT item_name, current_stock FROM master_items ORDER BY id").fetchall()
    names, stock = [], {}
    for row in rows:
        name = (row["item_name"] or "").strip()
        if not name:
            continue
        names.append(name)
        stock[name] = row["current_stock"] or 0
    return {"itemNames": names, "stockData": stock}


# ── Issue Requests sheet ──────────────────────────────────────────────────────
def append_rows(records: list) -> int:
    """Append one row per record. Returns the number of rows written."""
    cols = [c for c, _ in ISSUE_COLUMNS]
    sql = (f"INSERT INTO issue_requests ({', '.join(cols)}) "
           f"VALUES ({', '.join('?' for _ in cols)})")
    values = []
    for r in records:
        row = [r.get(c, "") for c in cols]
        row[cols.index("gate_pass")] = r.get("gate_pass") or ""
        row[cols.index("current_stock")] = r.get("current_stock") or 0
        row[cols.index("stock_after_purchase")] = r.get("stock_after_purchase") or 0
        values.append(row)
    with get_db() as conn:
        conn.executemany(sql, values)
    log.info("Appended %d rows to Issue Requests", len(values))
    return len(values)


def get_indent_numbers() -> list:
    """Raw Indent Number column, in row order, blanks included."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT indent_number FROM issue_requests ORDER BY id").fetchall()
    return [r["indent_number"] for r in rows]


def get_rows_for_indent(indent_number: str) -> list:
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM issue_requests WHERE indent_number=? ORDER BY id",
            (indent_number,)).fetchall()
    return [dict(r) for r in rows]


def get_db_stats() -> dict:
    with get_db() as conn:
        issue_rows = conn.execute("SELECT COUNT(*) FROM issue_requests").fetchone()[0]
        indents = conn.execute(
            "SELECT COUNT(DISTINCT indent_number) FROM issue_requests").fetchone()[0]
        master = conn.execute("SELECT COUNT(*) FROM master_items").fetchone()[0]
    db_path = paths.DB_PATH
    size_kb = round(os.path.getsize(db_path) / 1024, 1) if os.path.exists(db_path) else 0
    return {"issue_rows": issue_rows, "indents": indents, "master_items": master,
            "db_path": db_path, "db_size_kb": size_kb}


def startup(seed: bool = True) -> dict:
    """Initialize the sheet DB. Call once at app start."""
    init_db()
    seeded = seed_master_items() if seed else 0
    stats = get_db_stats()
    log.info("Sheet DB ready: %d issue rows, %d master items",
             stats["issue_rows"], stats["master_items"])
    return {"ok": True, "db_path": paths.DB_PATH, "seeded": seeded, "stats": stats}
