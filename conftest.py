"""
Shared pytest fixtures for the Indent Desk test suite.

INDENT_DATA_DIR is pointed at a throwaway directory BEFORE indent_desk is
imported, so the path module never touches the git-tracked data/ folder.
Each test then gets its own sheet DB, submission log and output dir.
"""
import os
import sys
import base64
import tempfile

os.environ["INDENT_DATA_DIR"] = tempfile.mkdtemp(prefix="indent_test_")
os.environ["DISABLE_RATE_LIMIT"] = "true"
for _var in ("STORE_BACKEND", "STORE_URL", "INDENT_CONFIG"):
    os.environ.pop(_var, None)

_PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

import pytest


# ── Temp data directory (per-test isolation) ──────────────────────────────────

@pytest.fixture(autouse=True)
def temp_data_dir(tmp_path, monkeypatch):
    """Redirect the sheet DB, submission log and PDF output to tmp_path."""
    from indent_desk.core import paths, db
    from indent_desk.api import trace

    data = str(tmp_path / "data")
    output = os.path.join(data, "output")
    os.makedirs(output, exist_ok=True)

    monkeypatch.setattr(paths, "DATA_DIR", data)
    monkeypatch.setattr(paths, "OUTPUT_DIR", output)
    monkeypatch.setattr(paths, "LOG_DIR", os.path.join(data, "logs"))
    monkeypatch.setattr(paths, "SUBMISSIONS_LOG_PATH", os.path.join(data, "indent_log.json"))
    monkeypatch.setattr(paths, "DB_PATH", os.path.join(data, "indent_sheet.db"))

    db.init_db()
    trace.clear_traces()
    return data


# ── Sample data ───────────────────────────────────────────────────────────────

@pytest.fixture
def sample_form():
    return {
        "store_name": "Palm Walk",
        "requested_by": "R. Sharma",
        "by_whom_orders": "Site Engineer",
        "purpose": "Plumbing work, Tower B",
        "gate_pass": "GP-118",
        "nature_of_demand": "Urgent",
        "project_name": "Palm Walk Phase 2",
        "store_required_by_date": "2026-10-25",
    }


@pytest.fixture
def sample_lines():
    return [
        {"item_name": "Pipe 25mm", "quantity": "12", "au": "Feet", "remarks": ""},
        {"item_name": "PVC Elbow 25mm", "quantity": "4", "au": "Nos", "remarks": "grey"},
    ]


@pytest.fixture
def seeded_ledger():
    """Master sheet with two known items."""
    from indent_desk.core import db
    db.upsert_master_item("Pipe 25mm", 50)
    db.upsert_master_item("PVC Elbow 25mm", 3)
    return {"Pipe 25mm": 50, "PVC Elbow 25mm": 3}


# ── Flask test client ─────────────────────────────────────────────────────────

def _basic_auth_header(user="indent", pw="changeme"):
    creds = base64.b64encode(f"{user}:{pw}".encode()).decode()
    return {"Authorization": f"Basic {creds}"}


class AuthenticatedClient:
    """Wraps Flask test client to add Basic Auth headers to every request."""
    def __init__(self, client, headers):
        self._client = client
        self._headers = headers

    def get(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.get(*args, **kwargs)

    def post(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.post(*args, **kwargs)


@pytest.fixture
def app(temp_data_dir, seeded_ledger):
    """Flask app on the local SQLite sheet, Master sheet pre-seeded."""
    from app import create_app
    flask_app = create_app({
        "store": {"backend": "local"},
        "dash_user": "indent",
        "dash_pass": "changeme",
        "secret_key": "test",
    })
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return AuthenticatedClient(app.test_client(), _basic_auth_header())


@pytest.fixture
def anon_client(app):
    return app.test_client()
