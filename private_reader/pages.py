from __future__ import annotations

import html

from private_reader.config import AVAILABLE_MODELS, DEFAULT_MODEL

_STYLE = """
body { font-family: Georgia, serif; margin: 0; background: #fff; color: #111; }
main { max-width: 760px; margin: 0 auto; padding: 24px; }
button { cursor: pointer; }
textarea { width: 100%; min-height: 180px; font: inherit; }
.card { border: 1px solid #ddd; border-radius: 8px; padding: 12px 16px; margin: 12px 0; }
.badge { font-size: 12px; border-radius: 4px; padding: 2px 6px; border: 1px solid; }
.Beginner { background: #dcfce7; color: #166534; }
.Intermediate { background: #fef9c3; color: #854d0e; }
.Advanced { background: #fee2e2; color: #991b1b; }
.error { color: #b91c1c; }
.muted { color: #666; font-size: 14px; }
pre { white-space: pre-wrap; background: #f6f6f6; padding: 8px; max-height: 240px; overflow: auto; }
#modal { position: fixed; inset: 0; background: rgba(0,0,0,.4); display: none; }
#modal > div { background: #fff; max-width: 720px; margin: 5vh auto; padding: 16px; max-height: 85vh; overflow: auto; }
"""


LOGIN_PAGE = f"""<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>Private Reader</title><style>{_STYLE}</style></head>
<body><main style="max-width: 380px; padding-top: 15vh; text-align: center">
  <h1>Private Reader</h1>
  <p class="muted">Enter password to continue</p>
  <form id="login">
    <input id="password" type="password" placeholder="Password" autofocus required>
    <button type="submit">Unlock</button>
  </form>
  <p id="error" class="error"></p>
</main>
<script>
document.getElementById("login").addEventListener("submit", async (e) => {{
  e.preventDefault();
  const res = await fetch("/api/auth", {{
    method: "POST",
    headers: {{"Content-Type": "application/json"}},
    body: JSON.stringify({{password: document.getElementById("password").value}}),
  }});
  if (res.ok) {{ window.location.href = "/app"; return; }}
  const data = await res.json().catch(() => ({{}}));
  document.getElementById("error").textContent = data.detail || "Invalid password";
}});
</script>
</body></html>
"""


_APP_SCRIPT = """
let index = null;
let analysisText = "";

const $ = (id) => document.getElementById(id);
const model = () => $("model").value;
const esc = (s) => String(s ?? "").replace(/[&<>"']/g, (c) => ({"&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&quot;", "'": "&#39;"}[c]));

async function api(path, body) {
  const res = await fetch(path, {method: "POST", headers: {"Content-Type": "application/json"}, body: JSON.stringify(body)});
  if (res.status === 401 && path !== "/api/auth") { window.location.href = "/"; }
  const data = await res.json().catch(() => ({}));
  if (!res.ok) { throw new Error(data.detail || "An error occurred. Please try again."); }
  return data;
}

async function apiText(path, body) {
  const res = await fetch(path, {method: "POST", headers: {"Content-Type": "application/json"}, body: JSON.stringify(body)});
  if (res.status === 401) { window.location.href = "/"; }
  if (!res.ok) { throw new Error("Export failed"); }
  return res.text();
}

// Only http(s) links are rendered as anchors.
const safeUrl = (u) => (/^https?:\\/\\//i.test(String(u ?? "").trim()) ? String(u).trim() : "");

function status(msg, isError) { $("status").textContent = msg; $("status").className = isError ? "error" : "muted"; }
function copy(text) { navigator.clipboard.writeText(text).then(() => status("Copied to clipboard!")); }
function copyFrom(path, body) { apiText(path, body).then(copy).catch((err) => status(err.message, true)); }

function render() {
  if (!index) { $("result").innerHTML = ""; return; }
  let out = `<h2>${esc(index.main_topic)}</h2><p>${esc(index.topic_summary)}</p>
    <button onclick="copyAll()">Copy all</button> <button onclick="enrichAll()">Find resources</button>
    <button onclick="exportDocx()">Download .docx</button>`;
  for (const m of index.learning_modules) {
    out += `<div class="card"><strong>${m.order}. ${esc(m.title)}</strong>
      <span class="badge ${esc(m.difficulty)}">${esc(m.difficulty)}</span>
      <p>${esc(m.description)}</p>
      <button onclick="copyModule(${m.order})">Copy</button> <button onclick="ground(${m.order})">Ground</button>`;
    (m.resources || []).forEach((r, i) => {
      const href = safeUrl(r.url);
      const link = href ? `<a href="${esc(href)}" target="_blank" rel="noopener">${esc(r.title)}</a>` : `<strong>${esc(r.title)}</strong>`;
      out += `<div class="card">${link}
        <span class="muted">score ${Number(r.score).toFixed(2)}</span><p class="muted">${esc(r.content)}</p>
        <button onclick="toggleRaw(${m.order}, ${i})">Show raw data</button>
        <button onclick="analyze(${m.order}, ${i})">Technical Analysis</button>
        <pre id="raw-${m.order}-${i}" style="display:none">${esc(r.raw_content || "Raw content not loaded yet")}</pre></div>`;
    });
    out += `</div>`;
  }
  $("result").innerHTML = out;
}

const moduleByOrder = (order) => index.learning_modules.find((m) => m.order === order);

function copyAll() { copyFrom("/api/export/text", index); }
function copyModule(order) { copyFrom(`/api/export/text?module_order=${order}`, index); }

async function submitText(e) {
  e.preventDefault();
  status("Generating learning index...");
  index = null; render();
  try { index = await api("/api/process-text", {text: $("text").value, model: model()}); status("Learning index generated successfully!"); }
  catch (err) { status(err.message, true); }
  render();
}

async function enrich(body, label) {
  status(`Searching resources ${label}...`);
  try { const data = await api("/api/enrich-modules", body); index = data.learning_index; status("Resources added successfully!"); render(); }
  catch (err) { status(err.message, true); }
}
function enrichAll() { enrich(index, "for all modules"); }
function ground(order) { enrich({...index, module_order: order}, `for "${moduleByOrder(order).title}"`); }

function toggleRaw(order, i) { const el = $(`raw-${order}-${i}`); el.style.display = el.style.display === "none" ? "block" : "none"; }

async function analyze(order, i) {
  const m = moduleByOrder(order);
  let r = m.resources[i];
  try {
    if (!r.raw_content) {
      status("Fetching raw content...");
      const data = await api("/api/extract", {url: r.url});
      r = {...r, raw_content: data.raw_content};
      m.resources[i] = r; render();
    }
    status("Running technical analysis...");
    const a = await api("/api/technical-analysis", {raw_content: r.raw_content, model: model()});
    await showAnalysis(a);
    status("Technical analysis completed!");
  } catch (err) { status(err.message, true); }
}

async function showAnalysis(analysis) {
  analysisText = await apiText("/api/export/analysis-text", analysis);
  $("analysis").textContent = analysisText;
  $("modal").style.display = "block";
}

async function exportDocx() {
  const res = await fetch("/api/export/docx", {method: "POST", headers: {"Content-Type": "application/json"}, body: JSON.stringify(index)});
  if (!res.ok) { status("Export failed", true); return; }
  const url = URL.createObjectURL(await res.blob());
  const a = document.createElement("a"); a.href = url; a.download = "learning-index.docx"; a.click(); URL.revokeObjectURL(url);
}

async function logout() { await fetch("/api/logout", {method: "POST"}); window.location.href = "/"; }

$("form").addEventListener("submit", submitText);
"""


def render_app_page() -> str:
    options = "\n".join(
        f'<option value="{html.escape(m.value)}"{" selected" if m.value == DEFAULT_MODEL else ""}>'
        f"{html.escape(m.label)} - {m.cost:.2f}€</option>"
        for m in AVAILABLE_MODELS
    )
    return f"""<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>Private Reader</title><style>{_STYLE}</style></head>
<body><main>
  <div style="display:flex; justify-content:space-between; align-items:center">
    <h1>Private Reader</h1>
    <span><select id="model" aria-label="Select LLM Model">{options}</select> <button onclick="logout()">Log out</button></span>
  </div>
  <form id="form">
    <textarea id="text" placeholder="Paste the text you want to learn from..." required></textarea>
    <button type="submit">Generate learning index</button>
  </form>
  <p id="status" class="muted"></p>
  <div id="result"></div>
</main>
<div id="modal"><div>
  <button onclick="copy(analysisText)">Copy all</button>
  <button onclick="document.getElementById('modal').style.display='none'">Close</button>
  <pre id="analysis" style="max-height:none"></pre>
</div></div>
<script>{_APP_SCRIPT}</script>
</body></html>
"""
