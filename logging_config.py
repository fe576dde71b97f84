"""
Logging setup for Indent Desk.

Console output is human-readable by default, JSON when LOG_JSON=true.
The rotating file under DATA_DIR/logs/indent.log is always JSON so it can
be grepped by indent_number or route.

Call setup_logging() once per process; create_app() does it. Calling it
again replaces only the handlers it installed itself.
"""
import os
import json
import logging
import logging.handlers
from datetime import datetime, timezone

from indent_desk.core import paths

# Attributes passed via extra={...} that are worth keeping in the output
EXTRA_FIELDS = ("route", "method", "duration_ms", "indent_number", "items", "user")

LOG_FILE = "indent.log"
LOG_MAX_BYTES = 5_000_000
LOG_BACKUPS = 5
QUIET_LOGGERS = ("urllib3", "werkzeug", "reportlab", "pdfminer")


def _extras(record) -> dict:
    return {k: getattr(record, k) for k in EXTRA_FIELDS if hasattr(record, k)}


class JSONFormatter(logging.Formatter):
    def format(self, record):
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}:{record.lineno}",
        }
        entry.update(_extras(record))
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """HH:MM:SS [L] logger: message  key=value ..."""
    COLORS = {"DEBUG": "\033[36m", "INFO": "\033[32m", "WARNING": "\033[33m",
              "ERROR": "\033[31m", "CRITICAL": "\033[35m"}
    RESET = "\033[0m"

    def format(self, record):
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{ts} [{record.levelname[0]}] {record.name}: {record.getMessage()}"
        extras = _extras(record)
        if "indent_number" in extras:
            line += f"  indent={extras['indent_number']}"
        if record.exc_info and record.exc_info[0]:
            line += "\n" + self.formatException(record.exc_info)
        return f"{self.COLORS.get(record.levelname, '')}{line}{self.RESET}"


def _tag(handler):
    handler._indent_handler = True
    return handler


def setup_logging(level=None, json_logs=None):
    """Install console + rotating file handlers on the root logger.

    Args:
        level: log level name (default: LOG_LEVEL env, else INFO)
        json_logs: JSON on the console too (default: LOG_JSON env)
    """
    level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    if json_logs is None:
        json_logs = os.environ.get("LOG_JSON", "").lower() == "true"

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    for h in [h for h in root.handlers if getattr(h, "_indent_handler", False)]:
        root.removeHandler(h)
        h.close()

    console = _tag(logging.StreamHandler())
    console.setFormatter(JSONFormatter() if json_logs else HumanFormatter())
    root.addHandler(console)

    try:
        log_dir = paths.LOG_DIR
        os.makedirs(log_dir, exist_ok=True)
        fh = _tag(logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, LOG_FILE),
            maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS))
        fh.setFormatter(JSONFormatter())
        root.addHandler(fh)
    except OSError as e:
        logging.getLogger("indent").warning("File logging off (%s): %s", paths.LOG_DIR, e)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("indent").info("Logging initialized (level=%s, json=%s)",
                                     level, json_logs)
