"""
Indent Desk — HTML Templates
Rendered with render_template_string from dashboard.py.
"""

BASE_CSS = """
:root{--bg:#0f1117;--sf:#1a1d27;--sf2:#242836;--bd:#2e3345;--tx:#e4e6ed;--tx2:#8b90a0;
--ac:#4f8cff;--gn:#34d399;--yl:#fbbf24;--rd:#f87171;--r:10px}
*{margin:0;padding:0;box-sizing:border-box}
body{font-family:'DM Sans',system-ui,sans-serif;background:var(--bg);color:var(--tx);min-height:100vh}
a{color:var(--ac);text-decoration:none}
.hdr{background:var(--sf);border-bottom:2px solid var(--bd);padding:14px 28px;display:flex;justify-content:space-between;align-items:center;gap:12px}
.hdr h1{font-size:18px;font-weight:600}
.hdr .sub{font-size:12px;color:var(--tx2)}
.hdr-status{font-family:'JetBrains Mono',monospace;font-size:11px;color:var(--tx2);text-align:right;line-height:1.5}
.ctr{max-width:1200px;margin:0 auto;padding:20px 28px}
.card{background:var(--sf);border:1px solid var(--bd);border-radius:var(--r);padding:20px;margin-bottom:16px}
.card-t{font-size:12px;font-weight:600;color:var(--tx2);text-transform:uppercase;letter-spacing:1px;margin-bottom:14px}
.grid3{display:grid;grid-template-columns:repeat(3,1fr);gap:14px}
label{display:block;font-size:12px;font-weight:600;color:var(--tx2);margin-bottom:4px}
label .req{color:var(--rd)}
input,select,textarea{width:100%;background:var(--sf2);border:1px solid var(--bd);border-radius:6px;color:var(--tx);padding:8px 10px;font-size:13px;font-family:inherit}
textarea{min-height:70px;resize:vertical}
.ref{font-family:'JetBrains Mono',monospace;font-size:14px;font-weight:600;color:var(--ac)}
.tbl{width:100%;border-collapse:collapse;font-size:13px}
.tbl th{text-align:left;padding:8px 6px;font-size:10px;color:var(--tx2);text-transform:uppercase;letter-spacing:.5px;border-bottom:1px solid var(--bd)}
.tbl td{padding:6px;border-bottom:1px solid rgba(46,51,69,.5);vertical-align:middle}
.num{font-family:'JetBrains Mono',monospace;text-align:center}
.neg{color:var(--rd);font-weight:600}
.btn{padding:9px 18px;font-size:13px;font-weight:600;border-radius:6px;border:1px solid var(--bd);background:var(--sf2);color:var(--tx);cursor:pointer}
.btn-p{background:var(--ac);border-color:var(--ac);color:#fff}
.btn-x{padding:4px 9px;font-size:12px}
.flash{padding:10px 14px;border-radius:8px;margin-bottom:12px;font-size:13px}
.flash-error{background:rgba(248,113,113,.12);border:1px solid var(--rd)}
.flash-success{background:rgba(52,211,153,.12);border:1px solid var(--gn)}
.flash-warn{background:rgba(251,191,36,.12);border:1px solid var(--yl)}
.actions{display:flex;justify-content:space-between;align-items:center;margin-top:14px}
"""

_HEADER = """
<div class="hdr">
 <div><h1>{{ company.name }}</h1><div class="sub">{{ company.subtitle }}</div></div>
 <div class="hdr-status">
  store: {{ status.backend }} · {{ status.items }} items
  {% if status.errors %}<br><span style="color:var(--yl)">degraded</span>{% endif %}
 </div>
</div>
"""

_FLASHES = """
{% with msgs = get_flashed_messages(with_categories=true) %}
 {% for cat, msg in msgs %}<div class="flash flash-{{ cat }}">{{ msg }}</div>{% endfor %}
{% endwith %}
"""

PAGE_FORM = """<!doctype html>
<html><head><meta charset="utf-8"><title>{{ company.name }} — Indent Form</title>
<style>""" + BASE_CSS + """</style></head><body>
""" + _HEADER + """
<div class="ctr">
""" + _FLASHES + """
<form method="post" action="{{ url_for('dashboard.submit') }}" id="indentForm">
 <div class="card">
  <div class="card-t">Request · next indent <span class="ref" id="nextRef">{{ next_reference }}</span></div>
  <div class="grid3">
   <div><label for="store_name">Store Name <span class="req">*</span></label>
    <select id="store_name" name="store_name">
     <option value="">Select Store</option>
     {% for s in stores %}<option value="{{ s }}" {% if form.store_name == s %}selected{% endif %}>{{ s }}</option>{% endfor %}
    </select></div>
   <div><label for="requested_by">Requested By <span class="req">*</span></label>
    <input id="requested_by" name="requested_by" value="{{ form.requested_by }}"></div>
   <div><label for="by_whom_orders">By Whom Orders</label>
    <input id="by_whom_orders" name="by_whom_orders" value="{{ form.by_whom_orders }}"></div>
   <div><label for="nature_of_demand">Nature of Demand</label>
    <input id="nature_of_demand" name="nature_of_demand" value="{{ form.nature_of_demand }}"></div>
   <div><label for="project_name">Project Name</label>
    <input id="project_name" name="project_name" value="{{ form.project_name }}"></div>
   <div><label for="store_required_by_date">Store Required By Date <span class="req">*</span></label>
    <input type="date" id="store_required_by_date" name="store_required_by_date" value="{{ form.store_required_by_date }}"></div>
   <div><label for="gate_pass">Gate Pass No.</label>
    <input id="gate_pass" name="gate_pass" value="{{ form.gate_pass }}"></div>
  </div>
  <div style="margin-top:14px"><label for="purpose">Purpose</label>
   <textarea id="purpose" name="purpose">{{ form.purpose }}</textarea></div>
 </div>

 <div class="card">
  <div class="card-t">Items</div>
  <datalist id="itemNames">{% for n in item_names %}<option value="{{ n }}">{% endfor %}<option value="{{ misc_item }}"></datalist>
  <datalist id="units">{% for u in units %}<option value="{{ u }}">{% endfor %}</datalist>
  <table class="tbl"><thead><tr>
   <th style="width:34%">Item Name *</th><th>Qty *</th><th>A/U</th><th>Remarks</th>
   <th>Current Stock</th><th>Stock After</th><th></th></tr></thead>
   <tbody id="lines">
   {% for ln in lines %}
    <tr>
     <td><input name="item_name" list="itemNames" value="{{ ln.item_name }}" oninput="recalc(this)"></td>
     <td><input name="quantity" type="number" min="1" value="{{ ln.quantity }}" oninput="recalc(this)" style="width:80px"></td>
     <td><input name="au" list="units" value="{{ ln.au }}" style="width:80px"></td>
     <td><input name="remarks" value="{{ ln.remarks }}"></td>
     <td class="num cur">0</td><td class="num aft">0</td>
     <td><button type="button" class="btn btn-x" onclick="dropLine(this)">✕</button></td>
    </tr>
   {% endfor %}
   </tbody></table>
  <div class="actions">
   <button type="button" class="btn" onclick="addLine()">+ Add Item</button>
   <button type="submit" class="btn btn-p">Submit Indent</button>
  </div>
 </div>
</form>

{% if recent %}
<div class="card"><div class="card-t">Recent Indents</div>
 <table class="tbl"><thead><tr><th>Indent #</th><th>Store</th><th>Requested By</th><th>Items</th><th>Submitted</th><th></th></tr></thead><tbody>
 {% for r in recent %}
  <tr><td class="ref"><a href="{{ url_for('dashboard.indent_detail', indent_number=r.indent_number) }}">{{ r.indent_number }}</a></td>
   <td>{{ r.store_name }}</td><td>{{ r.requested_by }}</td><td>{{ r['items']|length }}</td><td>{{ r.timestamp }}</td>
   <td><a href="{{ url_for('dashboard.indent_pdf', indent_number=r.indent_number) }}">PDF</a></td></tr>
 {% endfor %}
 </tbody></table></div>
{% endif %}
</div>
<script>
const STOCK = {{ stock_data|tojson }};
const MISC = {{ misc_item|tojson }};
function stockOf(name){ return name === MISC ? 0 : (STOCK[name] || 0); }
function recalc(el){
  const tr = el.closest('tr');
  const name = tr.querySelector('[name=item_name]').value.trim();
  const qty = parseInt(tr.querySelector('[name=quantity]').value, 10) || 0;
  const cur = stockOf(name);
  const aft = name === MISC ? 0 : cur - qty;
  tr.querySelector('.cur').textContent = cur;
  const a = tr.querySelector('.aft'); a.textContent = aft;
  a.classList.toggle('neg', aft < 0);
}
function addLine(){
  const body = document.getElementById('lines');
  const row = body.rows[0].cloneNode(true);
  row.querySelectorAll('input').forEach(i => i.value = '');
  row.querySelector('.cur').textContent = '0'; row.querySelector('.aft').textContent = '0';
  body.appendChild(row);
}
function dropLine(btn){
  const body = document.getElementById('lines');
  if (body.rows.length > 1) btn.closest('tr').remove();
}
document.querySelectorAll('#lines [name=item_name]').forEach(recalc);
</script>
</body></html>
"""

PAGE_RECEIPT = """<!doctype html>
<html><head><meta charset="utf-8"><title>Indent {{ sub.indent_number }}</title>
<style>""" + BASE_CSS + """</style></head><body>
""" + _HEADER + """
<div class="ctr">
""" + _FLASHES + """
<div class="card">
 <div class="card-t">Indent <span class="ref">{{ sub.indent_number }}</span> · {{ sub.timestamp }}</div>
 <div class="grid3">
  {% for label, key in fields %}
   <div><label>{{ label }}</label><div>{{ sub[key] or '—' }}</div></div>
  {% endfor %}
 </div>
</div>
<div class="card"><div class="card-t">Items</div>
 <table class="tbl"><thead><tr><th>#</th><th>Item Name</th><th>Qty</th><th>A/U</th><th>Remarks</th><th>Current Stock</th><th>Stock After</th></tr></thead><tbody>
 {% for it in sub['items'] %}
  <tr><td>{{ loop.index }}</td><td>{{ it.item_name }}</td><td class="num">{{ it.quantity }}</td><td>{{ it.au }}</td>
   <td>{{ it.remarks }}</td><td class="num">{{ it.current_stock }}</td>
   <td class="num {% if it.stock_after_purchase < 0 %}neg{% endif %}">{{ it.stock_after_purchase }}</td></tr>
 {% endfor %}
 </tbody></table>
 <div class="actions">
  <a class="btn" href="{{ url_for('dashboard.home') }}">← New Indent</a>
  <a class="btn btn-p" href="{{ url_for('dashboard.indent_pdf', indent_number=sub.indent_number) }}">Download PDF</a>
 </div>
</div>
</div></body></html>
"""
