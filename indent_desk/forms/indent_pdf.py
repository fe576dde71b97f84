"""
Indent / Issue Request PDF
==========================
One page (more if the item list runs long) per submitted indent:

  - Company header + "INDENT / ISSUE REQUEST" title
  - Indent # / date box
  - Request details block (store, requester, purpose, ...)
  - Item table: S.No | Item Name | Qty | A/U | Current Stock | Stock After | Remarks
  - Signature lines

Rows grow with wrapped item names and remarks; the table header repeats
on every new page.
"""

import os
import logging
from datetime import datetime

from reportlab.lib.pagesizes import A4
from reportlab.lib.colors import HexColor
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from ..core.submission import format_date

log = logging.getLogger("indent.pdf")

FILL = HexColor("#dbe5f1")
BORDER = HexColor("#333333")
ALT_ROW = HexColor("#f4f6fa")
NEG = HexColor("#b42318")
BLACK = HexColor("#000000")
GRAY = HexColor("#555555")

PAD = 4

# (label, width fraction, data alignment)
COLUMNS = [
    ("S.NO",          0.06, "C"),
    ("ITEM NAME",     0.34, "L"),
    ("QTY",           0.08, "C"),
    ("A/U",           0.08, "C"),
    ("CURRENT STOCK", 0.12, "C"),
    ("STOCK AFTER",   0.12, "C"),
    ("REMARKS",       0.20, "L"),
]

DETAIL_FIELDS = [
    ("Store Name", "store_name"),
    ("Requested By", "requested_by"),
    ("By Whom Orders", "by_whom_orders"),
    ("Nature of Demand", "nature_of_demand"),
    ("Project Name", "project_name"),
    ("Gate Pass", "gate_pass"),
    ("Required By", "store_required_by_date"),
    ("Purpose", "purpose"),
]


def _col_edges(lm, tw):
    edges, widths, x = [], [], lm
    for _, frac, _ in COLUMNS:
        w = tw * frac
        edges.append(x); widths.append(w); x += w
    return edges, widths


def _cell(c, text, x, w, y, align, font="Helvetica", size=8.5):
    c.setFont(font, size)
    if align == "L":
        c.drawString(x + PAD, y, text)
    elif align == "R":
        c.drawRightString(x + w - PAD, y, text)
    else:
        c.drawCentredString(x + w / 2, y, text)


def generate_indent_pdf(submission: dict, output_path: str, company: dict = None) -> dict:
    """Render a logged submission to ``output_path``.

    submission keys: indent_number, timestamp, store_name, requested_by, ...,
        items: [{item_name, quantity, au, remarks, current_stock, stock_after_purchase}]
    """
    company = company or {}
    indent_number = submission.get("indent_number", "")
    items = submission.get("items", [])
    log.info("Generating indent PDF %s (%d items)", indent_number, len(items))

    try:
        submitted = datetime.fromisoformat(submission.get("timestamp", ""))
    except (TypeError, ValueError):
        submitted = datetime.now()

    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
    W, H = A4
    LM, RM = 36, W - 36
    TW = RM - LM
    edges, widths = _col_edges(LM, TW)

    c = canvas.Canvas(output_path, pagesize=A4)
    c.setTitle(f"Indent {indent_number}")
    c.setAuthor(company.get("name", ""))

    # ─── Header ───────────────────────────────────────────────
    y = H - 50
    c.setFillColor(BLACK)
    c.setFont("Helvetica-Bold", 18)
    c.drawString(LM, y, company.get("name", ""))
    c.setFont("Helvetica", 10); c.setFillColor(GRAY)
    c.drawString(LM, y - 15, company.get("subtitle", "Indent / Issue Request"))

    c.setFillColor(BLACK); c.setFont("Helvetica-Bold", 16)
    c.drawRightString(RM, y, "INDENT / ISSUE REQUEST")
    c.setStrokeColor(BLACK); c.setLineWidth(1.5)
    c.line(LM, y - 24, RM, y - 24)

    # ─── Indent # / Date box ─────────────────────────────────
    bw, rh = 210, 20
    bx, by = RM - bw, y - 34
    for i, (lbl, val) in enumerate([("INDENT #", indent_number),
                                     ("DATE", submitted.strftime("%d %b %Y"))]):
        ry = by - (i + 1) * rh
        c.setFillColor(FILL); c.rect(bx, ry, bw, rh, fill=1, stroke=0)
        c.setStrokeColor(BORDER); c.setLineWidth(0.6)
        c.rect(bx, ry, bw, rh, stroke=1, fill=0)
        c.setFillColor(BLACK)
        c.setFont("Helvetica-Bold", 10); c.drawString(bx + 8, ry + 6, lbl)
        c.setFont("Helvetica-Bold", 11); c.drawRightString(RM - 8, ry + 6, val)

    # ─── Details block ───────────────────────────────────────
    dy = y - 48
    label_w = 100
    value_w = bx - LM - label_w - 16
    for label, key in DETAIL_FIELDS:
        val = submission.get(key, "") or "—"
        if key == "store_required_by_date":
            val = format_date(val) or "—"
        lines = simpleSplit(str(val), "Helvetica", 9, value_w) or ["—"]
        c.setFont("Helvetica-Bold", 9); c.setFillColor(BLACK)
        c.drawString(LM, dy, f"{label}:")
        c.setFont("Helvetica", 9)
        for ln in lines:
            c.drawString(LM + label_w, dy, ln); dy -= 12
        dy -= 2
    y = min(dy, by - 2 * rh) - 14

    # ─── Item table ──────────────────────────────────────────
    hdr_h = 20

    def _draw_table_header(top):
        c.setFillColor(FILL)
        c.rect(LM, top - hdr_h, TW, hdr_h, fill=1, stroke=0)
        c.setStrokeColor(BORDER); c.setLineWidth(0.5)
        c.rect(LM, top - hdr_h, TW, hdr_h, fill=0, stroke=1)
        c.setFillColor(BLACK)
        for (label, _, _), x, w in zip(COLUMNS, edges, widths):
            c.line(x, top, x, top - hdr_h)
            _cell(c, label, x, w, top - hdr_h + 7, "C", "Helvetica-Bold", 7.5)
        return top - hdr_h

    y = _draw_table_header(y)
    page_num = 1

    for idx, item in enumerate(items):
        name_lines = simpleSplit(str(item.get("item_name", "")), "Helvetica", 8.5,
                                 widths[1] - 2 * PAD) or [""]
        remark_lines = simpleSplit(str(item.get("remarks", "")), "Helvetica", 8,
                                   widths[6] - 2 * PAD) or [""]
        row_h = max(18, max(len(name_lines), len(remark_lines)) * 10 + 8)

        if y - row_h < 110:
            c.setFillColor(GRAY); c.setFont("Helvetica", 8)
            c.drawRightString(RM, 20, f"Page {page_num}")
            c.showPage()
            page_num += 1
            y = _draw_table_header(H - 50)

        if idx % 2 == 1:
            c.setFillColor(ALT_ROW)
            c.rect(LM, y - row_h, TW, row_h, fill=1, stroke=0)
        c.setStrokeColor(BORDER); c.setLineWidth(0.3)
        c.rect(LM, y - row_h, TW, row_h, fill=0, stroke=1)
        for x in edges[1:]:
            c.line(x, y, x, y - row_h)

        mid = y - row_h / 2 - 3
        after = item.get("stock_after_purchase", 0)
        c.setFillColor(BLACK)
        _cell(c, str(idx + 1), edges[0], widths[0], mid, "C")
        ty = y - 12
        c.setFont("Helvetica", 8.5)
        for ln in name_lines:
            c.drawString(edges[1] + PAD, ty, ln); ty -= 10
        _cell(c, str(item.get("quantity", "")), edges[2], widths[2], mid, "C")
        _cell(c, str(item.get("au", "")), edges[3], widths[3], mid, "C")
        _cell(c, str(item.get("current_stock", 0)), edges[4], widths[4], mid, "C")
        if isinstance(after, int) and after < 0:
            c.setFillColor(NEG)
        _cell(c, str(after), edges[5], widths[5], mid, "C", "Helvetica-Bold")
        c.setFillColor(BLACK)
        ty = y - 12
        c.setFont("Helvetica", 8)
        for ln in remark_lines:
            c.drawString(edges[6] + PAD, ty, ln); ty -= 10
        y -= row_h

    if not items:
        c.setFont("Helvetica-Oblique", 9); c.setFillColor(GRAY)
        c.drawString(LM + PAD, y - 14, "No items")
        y -= 20

    # ─── Signatures ──────────────────────────────────────────
    sy = max(y - 60, 60)
    c.setStrokeColor(BLACK); c.setLineWidth(0.6); c.setFillColor(BLACK)
    c.setFont("Helvetica", 9)
    third = TW / 3
    for i, label in enumerate(["Requested By", "Store In-Charge", "Approved By"]):
        x = LM + i * third
        c.line(x + 10, sy, x + third - 10, sy)
        c.drawCentredString(x + third / 2, sy - 12, label)

    c.setFillColor(GRAY); c.setFont("Helvetica", 8)
    c.drawRightString(RM, 20, f"Page {page_num}")
    c.save()

    log.info("Indent PDF %s → %s", indent_number, output_path)
    return {
        "ok": True,
        "path": output_path,
        "indent_number": indent_number,
        "items_count": len(items),
        "pages": page_num,
    }
