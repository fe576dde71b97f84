"""
Tests for indent_desk/forms/indent_pdf.py: layout smoke checks via pdfplumber.
"""
import os

import pdfplumber
import pytest

from indent_desk.forms.indent_pdf import generate_indent_pdf

COMPANY = {"name": "AMG Reality", "subtitle": "Indent / Issue Request"}


@pytest.fixture
def submission(sample_form):
    return dict(sample_form, indent_number="I-014", timestamp="2026-10-19T11:30:00",
                items=[
                    {"item_name": "Pipe 25mm", "quantity": 12, "au": "Feet",
                     "remarks": "", "current_stock": 50, "stock_after_purchase": 38},
                    {"item_name": "PVC Elbow 25mm", "quantity": 4, "au": "Nos",
                     "remarks": "grey", "current_stock": 3, "stock_after_purchase": -1},
                ])


def _text(path):
    with pdfplumber.open(path) as pdf:
        return "\n".join(page.extract_text() or "" for page in pdf.pages), len(pdf.pages)


class TestIndentPdf:

    def test_generates_file(self, submission, tmp_path):
        out = str(tmp_path / "Indent_I-014.pdf")
        result = generate_indent_pdf(submission, out, COMPANY)
        assert result["ok"] is True
        assert result["items_count"] == 2
        assert result["pages"] == 1
        assert os.path.getsize(out) > 1000

    def test_content(self, submission, tmp_path):
        out = str(tmp_path / "indent.pdf")
        generate_indent_pdf(submission, out, COMPANY)
        text, pages = _text(out)
        assert pages == 1
        assert "AMG Reality" in text
        assert "I-014" in text
        assert "Pipe 25mm" in text
        assert "PVC Elbow 25mm" in text
        assert "R. Sharma" in text
        assert "25 Oct 2026" in text
        assert "19 Oct 2026" in text
        assert "-1" in text

    def test_no_items(self, submission, tmp_path):
        submission["items"] = []
        out = str(tmp_path / "empty.pdf")
        result = generate_indent_pdf(submission, out, COMPANY)
        assert result["items_count"] == 0
        assert "No items" in _text(out)[0]

    def test_long_list_breaks_pages(self, submission, tmp_path):
        submission["items"] = [
            {"item_name": f"Item {n}", "quantity": 1, "au": "Nos", "remarks": "",
             "current_stock": 5, "stock_after_purchase": 4}
            for n in range(1, 81)
        ]
        out = str(tmp_path / "long.pdf")
        result = generate_indent_pdf(submission, out, COMPANY)
        text, pages = _text(out)
        assert result["pages"] == pages
        assert pages >= 2
        assert "Item 80" in text

    def test_creates_output_dir(self, submission, tmp_path):
        out = str(tmp_path / "nested" / "dir" / "x.pdf")
        generate_indent_pdf(submission, out)
        assert os.path.exists(out)
