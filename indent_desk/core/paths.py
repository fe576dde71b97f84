"""
indent_desk/core/paths.py — where Indent Desk keeps its files

    DATA_DIR/
        indent_sheet.db     local Issue Requests + Master sheets (SQLite)
        indent_log.json     submission log behind receipts and PDFs
        output/             generated indent PDFs
        logs/indent.log     rotating JSON log

DATA_DIR is INDENT_DATA_DIR when set (point it at a persistent volume),
otherwise <project>/data. Modules read these names at call time through
this module, so tests can monkeypatch them.
"""

import os
import logging

log = logging.getLogger("indent.paths")

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
DEFAULT_DATA_DIR = os.path.join(PROJECT_ROOT, "data")

DATA_DIR = os.environ.get("INDENT_DATA_DIR") or DEFAULT_DATA_DIR
if DATA_DIR != DEFAULT_DATA_DIR:
    log.info("DATA_DIR from INDENT_DATA_DIR: %s", DATA_DIR)

OUTPUT_DIR = os.path.join(DATA_DIR, "output")
LOG_DIR = os.path.join(DATA_DIR, "logs")
DB_PATH = os.path.join(DATA_DIR, "indent_sheet.db")
SUBMISSIONS_LOG_PATH = os.path.join(DATA_DIR, "indent_log.json")
CONFIG_PATH = os.environ.get("INDENT_CONFIG") or os.path.join(PROJECT_ROOT, "indent_config.json")

os.makedirs(OUTPUT_DIR, exist_ok=True)


def validate_paths() -> dict:
    """Check the data directories exist and DATA_DIR is writable.

    A missing config file is only a warning: defaults and env vars apply.
    """
    result = {"ok": True, "errors": [], "warnings": [],
              "resolved": {"DATA_DIR": DATA_DIR, "OUTPUT_DIR": OUTPUT_DIR,
                           "DB_PATH": DB_PATH, "CONFIG_PATH": CONFIG_PATH}}

    for name, path in (("DATA_DIR", DATA_DIR), ("OUTPUT_DIR", OUTPUT_DIR)):
        if not os.path.isdir(path):
            result["errors"].append(f"{name} missing: {path}")
    if not os.path.exists(CONFIG_PATH):
        result["warnings"].append(f"No config file at {CONFIG_PATH}; using defaults")

    marker = os.path.join(DATA_DIR, ".write_check")
    try:
        with open(marker, "w") as f:
            f.write("ok")
        os.remove(marker)
    except OSError as e:
        result["errors"].append(f"DATA_DIR not writable: {e}")

    result["ok"] = not result["errors"]
    return result
