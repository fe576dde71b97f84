"""
Route tests: form pages, JSON API and the /exec sheet endpoint.

Uses the Flask test client from conftest (local SQLite sheet, Master
sheet seeded with Pipe 25mm=50 and PVC Elbow 25mm=3).
"""
import json

from indent_desk.core import db, submission


def _form_data(sample_form, sample_lines):
    data = dict(sample_form)
    for key in ("item_name", "quantity", "au", "remarks"):
        data[key] = [ln[key] for ln in sample_lines]
    return data


# ═══════════════════════════════════════════════════════════════════════════════
# Auth & headers
# ═══════════════════════════════════════════════════════════════════════════════

class TestAuth:

    def test_form_requires_auth(self, anon_client):
        r = anon_client.get("/")
        assert r.status_code == 401
        assert "Basic" in r.headers["WWW-Authenticate"]

    def test_wrong_password(self, app):
        import base64
        creds = base64.b64encode(b"indent:nope").decode()
        r = app.test_client().get("/", headers={"Authorization": f"Basic {creds}"})
        assert r.status_code == 401

    def test_health_is_open(self, anon_client):
        assert anon_client.get("/api/health").status_code == 200

    def test_exec_is_open(self, anon_client):
        assert anon_client.get("/exec?action=getNextIndentNumber").status_code == 200

    def test_security_headers(self, client):
        r = client.get("/")
        assert r.headers["X-Content-Type-Options"] == "nosniff"
        assert r.headers["X-Frame-Options"] == "SAMEORIGIN"


# ═══════════════════════════════════════════════════════════════════════════════
# Form
# ═══════════════════════════════════════════════════════════════════════════════

class TestForm:

    def test_renders(self, client):
        r = client.get("/")
        assert r.status_code == 200
        html = r.get_data(as_text=True)
        assert "AMG Reality" in html
        assert "I-001" in html
        assert "Palm Walk" in html
        assert "Pipe 25mm" in html
        assert "Miscellaneous" in html

    def test_next_reference_shown(self, client):
        db.append_rows([{"indent_number": "I-001"}, {"indent_number": "I-002"}])
        assert "I-003" in client.get("/").get_data(as_text=True)

    def test_submit_success(self, client, sample_form, sample_lines):
        r = client.post("/submit", data=_form_data(sample_form, sample_lines))
        assert r.status_code == 302
        assert r.headers["Location"].endswith("/indent/I-001")
        assert db.get_db_stats()["issue_rows"] == 2

        page = client.get("/indent/I-001")
        assert page.status_code == 200
        html = page.get_data(as_text=True)
        assert "Indent I-001 submitted (2 items)" in html
        assert "PVC Elbow 25mm" in html
        assert "38" in html

    def test_submit_log_failure_warns(self, client, sample_form, sample_lines,
                                      monkeypatch):
        def disk_full(entries):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(submission, "_save_all_submissions", disk_full)
        r = client.post("/submit", data=_form_data(sample_form, sample_lines))
        assert r.status_code == 302
        assert r.headers["Location"].endswith("/")
        assert db.get_db_stats()["issue_rows"] == 2
        html = client.get("/").get_data(as_text=True)
        assert "Indent I-001 submitted" in html
        assert "local copy could not be written" in html

    def test_submit_numbers_advance(self, client, sample_form, sample_lines):
        client.post("/submit", data=_form_data(sample_form, sample_lines))
        r = client.post("/submit", data=_form_data(sample_form, sample_lines))
        assert r.headers["Location"].endswith("/indent/I-002")

    def test_submit_validation_error(self, client, sample_form, sample_lines):
        sample_form["requested_by"] = ""
        sample_lines[0]["quantity"] = "0"
        r = client.post("/submit", data=_form_data(sample_form, sample_lines))
        assert r.status_code == 400
        html = r.get_data(as_text=True)
        assert "Requested By is required" in html
        assert "Item 1: Quantity must be a whole number above 0" in html
        assert db.get_db_stats()["issue_rows"] == 0

    def test_submit_blank_lines_ignored(self, client, sample_form, sample_lines):
        sample_lines.append({"item_name": "", "quantity": "", "au": "", "remarks": ""})
        client.post("/submit", data=_form_data(sample_form, sample_lines))
        assert db.get_db_stats()["issue_rows"] == 2

    def test_unknown_indent_redirects_home(self, client):
        r = client.get("/indent/I-999")
        assert r.status_code == 302
        assert r.headers["Location"].endswith("/")


class TestPdf:

    def test_download(self, client, sample_form, sample_lines):
        client.post("/submit", data=_form_data(sample_form, sample_lines))
        r = client.get("/indent/I-001/pdf")
        assert r.status_code == 200
        assert r.mimetype == "application/pdf"
        assert "Indent_I-001.pdf" in r.headers["Content-Disposition"]
        assert r.data[:4] == b"%PDF"

    def test_unknown(self, client):
        r = client.get("/indent/I-404/pdf")
        assert r.status_code == 404
        assert r.get_json()["ok"] is False


# ═══════════════════════════════════════════════════════════════════════════════
# JSON API
# ═══════════════════════════════════════════════════════════════════════════════

class TestApi:

    def test_master(self, client, seeded_ledger):
        d = client.get("/api/master").get_json()
        assert d["stockData"] == seeded_ledger
        assert d["itemNames"] == ["Pipe 25mm", "PVC Elbow 25mm"]

    def test_next_reference(self, client):
        d = client.get("/api/next-reference").get_json()
        assert d["indent_number"] == "I-001"
        assert d["cached"] == "I-001"

    def test_stock_after(self, client):
        d = client.get("/api/stock-after",
                       query_string={"item": "Pipe 25mm", "qty": "12"}).get_json()
        assert d["current_stock"] == 50
        assert d["stock_after"] == 38
        assert d["quantity_parsed"] is True

    def test_stock_after_misc_and_junk_qty(self, client):
        d = client.get("/api/stock-after",
                       query_string={"item": "Miscellaneous", "qty": "lots"}).get_json()
        assert d["stock_after"] == 0
        assert d["quantity"] == 0
        assert d["quantity_parsed"] is False

    def test_refresh_picks_up_master_edits(self, client):
        db.upsert_master_item("Pipe 25mm", 80)
        d = client.post("/api/refresh").get_json()
        assert d["ok"] is True
        assert d["items"] == 2
        stock = client.get("/api/master").get_json()["stockData"]
        assert stock["Pipe 25mm"] == 80

    def test_health(self, client):
        d = client.get("/api/health").get_json()
        assert d["status"] == "ok"
        assert d["store"]["backend"] == "local"
        assert d["sheet"]["master_items"] == 2

    def test_traces_recorded(self, client, sample_form, sample_lines):
        client.post("/submit", data=_form_data(sample_form, sample_lines))
        d = client.get("/api/admin/traces?workflow=indent_submit").get_json()
        assert len(d["traces"]) == 1
        trace = d["traces"][0]
        assert trace["status"] == "ok"
        detail = client.get(f"/api/admin/traces/{trace['id']}").get_json()
        assert detail["trace"]["workflow"] == "indent_submit"

    def test_trace_not_found(self, client):
        assert client.get("/api/admin/traces/tr_nope").status_code == 404


# ═══════════════════════════════════════════════════════════════════════════════
# /exec sheet endpoint
# ═══════════════════════════════════════════════════════════════════════════════

class TestExec:

    def test_next_indent_number_text(self, anon_client):
        db.append_rows([{"indent_number": "I-009"}])
        r = anon_client.get("/exec?action=getNextIndentNumber")
        assert r.mimetype == "text/plain"
        assert r.get_data(as_text=True) == "I-010"

    def test_master_data(self, anon_client, seeded_ledger):
        d = anon_client.get("/exec?action=getMasterData").get_json()
        assert d == {"itemNames": list(seeded_ledger), "stockData": seeded_ledger}

    def test_default_is_item_names(self, anon_client):
        assert anon_client.get("/exec").get_json() == ["Pipe 25mm", "PVC Elbow 25mm"]

    def test_indent_numbers(self, anon_client):
        db.append_rows([{"indent_number": "I-001"}, {"indent_number": ""}])
        assert anon_client.get("/exec?action=getIndentNumbers").get_json() == ["I-001", ""]

    def test_post_appends(self, anon_client):
        payload = json.dumps([
            {"indentNumber": "I-001", "itemName": "Pipe 25mm", "quantity": 3,
             "currentStock": 50, "stockAfterPurchase": 47},
            {"indentNumber": "I-001", "itemName": "Tee", "quantity": 1},
        ])
        r = anon_client.post("/exec", data={"submissionData": payload})
        assert r.get_data(as_text=True) == "Success"
        rows = db.get_rows_for_indent("I-001")
        assert [row["item_name"] for row in rows] == ["Pipe 25mm", "Tee"]
        assert rows[0]["stock_after_purchase"] == 47
        assert rows[1]["current_stock"] == 0

    def test_post_missing_payload(self, anon_client):
        r = anon_client.post("/exec", data={})
        assert r.status_code == 200
        assert r.get_data(as_text=True).startswith("Error:")

    def test_post_bad_json(self, anon_client):
        r = anon_client.post("/exec", data={"submissionData": "{not json"})
        assert r.get_data(as_text=True).startswith("Error:")
        assert db.get_db_stats()["issue_rows"] == 0
