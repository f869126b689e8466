from __future__ import annotations
import argparse
import asyncio
import threading
from flask import Flask, request, jsonify, Response
from chunksearch import config as CFG
from chunksearch.display import display_record
from chunksearch.engine import Engine
from chunksearch.sink import RecordingSink

app = Flask(__name__)
_engine: Engine | None = None
_sink: RecordingSink | None = None
# One search/reveal at a time; a second request is refused, not queued
_busy = threading.Lock()


def attach(engine: Engine) -> None:
    """Serve `engine`; its sink must be a RecordingSink."""
    global _engine, _sink
    if not isinstance(engine.sink, RecordingSink):
        raise TypeError("web front end needs an Engine built with a RecordingSink")
    _engine = engine
    _sink = engine.sink


def _require_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Engine not attached. Call attach() or run main().")
    return _engine


def _snapshot(rows=None, *, accepted: bool = True) -> dict:
    eng = _require_engine()
    out = {
        "accepted": accepted,
        "query": eng.session.query,
        "status": _sink.last_status if _sink else None,
        "revealed": eng.pager.revealed_count,
        "total": eng.pager.total,
        "more": eng.pager.has_more,
        "searching": eng.searching,
    }
    if rows is not None:
        out["rows"] = [
            {**display_record(r), "delay": d, "row": r} for r, d in rows
        ]
    return out


def _drain() -> list:
    assert _sink is not None
    return _sink.drain()


# ---------- API ----------
@app.get("/api/health")
def api_health():
    eng = _engine
    return jsonify({"ok": True, "ready": bool(eng and eng.ready)})


@app.get("/api/status")
def api_status():
    return jsonify(_snapshot())


@app.get("/api/search")
def api_search():
    eng = _require_engine()
    q = request.args.get("q", "", type=str)
    if not _busy.acquire(blocking=False):
        return jsonify(_snapshot([], accepted=False)), 409
    try:
        ranked = asyncio.run(eng.search(q))
        rows = _drain() if ranked is not None else []
    finally:
        _busy.release()
    return jsonify(_snapshot(rows, accepted=ranked is not None))


@app.get("/api/more")
def api_more():
    eng = _require_engine()
    if not _busy.acquire(blocking=False):
        return jsonify(_snapshot([], accepted=False)), 409
    try:
        asyncio.run(eng.reveal_more())
        rows = _drain()
    finally:
        _busy.release()
    return jsonify(_snapshot(rows))


# ---------- UI ----------
@app.get("/")
def home():
    # Single page: CSS variables + minimal JS, no external deps.
    html = r"""
<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8" />
<meta name="viewport" content="width=device-width,initial-scale=1" />
<title>Chunk Search • Flask UI</title>
<style>
:root{
  --bg:#0b0f14; --panel:#0f141b; --ink:#cfd8e3; --muted:#8a94a6;
  --accent:#6ee7ff; --border:#1c2530;
}
*{box-sizing:border-box}
body{ margin:0; background:var(--bg); color:var(--ink);
  font:16px/1.45 system-ui,-apple-system,Segoe UI,Roboto,Ubuntu,"Helvetica Neue",Arial; }
.container{ max-width:1100px; margin:24px auto; padding:0 16px; }
.controls{ display:flex; gap:12px; margin:12px 0; }
.controls input{ flex:1; padding:12px 14px; border-radius:12px; border:1px solid var(--border);
  background:#0b1117; color:var(--ink); font-size:16px; outline:none; }
.btn{ padding:10px 14px; border-radius:10px; border:1px solid var(--border);
  background:#0b1117; color:var(--ink); cursor:pointer; }
.btn:disabled{ opacity:.4; cursor:default }
.hidden{ display:none }
#status{ color:var(--muted); font-size:13px }
.grid{ display:grid; grid-template-columns:repeat(auto-fill,minmax(240px,1fr)); gap:14px; margin-top:16px }
.card{ background:var(--panel); border:1px solid var(--border); border-radius:16px; padding:14px;
  opacity:0; transform:translateY(12px); transition:all .5s; }
.card.shown{ opacity:1; transform:none }
.card img{ width:100%; height:140px; object-fit:contain; background:#0b1117; border-radius:10px }
.card h2{ font-size:16px; margin:8px 0 4px 0; white-space:nowrap; overflow:hidden; text-overflow:ellipsis }
.small{ color:var(--muted); font-size:12px }
a{ color:var(--accent); text-decoration:none }
</style>
</head>
<body>
  <div class="container">
    <h1>Chunk Search</h1>
    <div class="controls">
      <input id="q" type="text" placeholder="Search marks…" autocomplete="off" autofocus />
      <button id="go" class="btn">Search</button>
    </div>
    <div id="status">Ready.</div>
    <div id="out" class="grid"></div>
    <p><button id="more" class="btn hidden">Load more</button></p>
  </div>
<script>
const $ = (s) => document.querySelector(s);
const q = $("#q"), out = $("#out"), statusEl = $("#status"), more = $("#more"), go = $("#go");
function esc(s){ return String(s ?? "").replace(/[&<>"]/g, c => ({"&":"&amp;","<":"&lt;",">":"&gt;",'"':"&quot;"}[c])); }
function card(r){
  const el = document.createElement("div");
  el.className = "card";
  const img = r.image_url ? `<img src="${esc(r.image_url)}" loading="lazy" alt="${esc(r.mark)}">` : "";
  const sn = r.status_url ? `<a href="${esc(r.status_url)}" target="_blank">${esc(r.serial)}</a>` : esc(r.serial);
  el.innerHTML = `${img}<h2 title="${esc(r.mark)}">${esc(r.mark)}</h2>
    <div class="small">Owned by <b>${esc(r.owner)}</b></div>
    <div class="small">Serial No # ${sn}</div>
    <p>${esc(r.description)}</p>
    <div class="small">Class <b>${esc(r["class"])}</b> • Filed on <b>${esc(r.filed)}</b></div>`;
  out.appendChild(el);
  setTimeout(() => el.classList.add("shown"), Math.round((r.delay || 0) * 1000));
}
function apply(data, fresh){
  if(fresh && data.accepted) out.innerHTML = "";
  (data.rows || []).forEach(card);
  statusEl.textContent = data.status || "";
  more.classList.toggle("hidden", !data.more);
}
async function call(url, fresh){
  go.disabled = true; more.disabled = true;
  if(fresh) statusEl.textContent = "Locating data chunks...";
  try{
    const resp = await fetch(url);
    apply(await resp.json(), fresh);
  }catch(e){
    statusEl.textContent = `Error: ${e.message ?? e}`;
  }finally{
    go.disabled = false; more.disabled = false;
  }
}
go.addEventListener("click", () => call(`/api/search?q=${encodeURIComponent(q.value)}`, true));
q.addEventListener("keypress", (e) => { if(e.key === "Enter") go.click(); });
more.addEventListener("click", () => call("/api/more", false));
</script>
</body>
</html>
"""
    return Response(html, mimetype="text/html")

def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Run Flask UI on top of Engine")
    ap.add_argument("--source", default=CFG.DEFAULT_SOURCE)
    mode = ap.add_mutually_exclusive_group(required=True)
    mode.add_argument("--range-map", default=None)
    mode.add_argument("--probe", nargs=2, type=int, metavar=("MIN", "MAX"))
    ap.add_argument("--cache-size", type=int, default=CFG.MAX_CACHE_SIZE)
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8000)
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    # The browser staggers cards itself, so no pause between batches server-side
    eng = Engine.create(
        args.source,
        range_map=args.range_map,
        probe=tuple(args.probe) if args.probe else None,
        cache_size=args.cache_size,
        verbose=args.verbose,
        sink=RecordingSink(),
        batch_interval=0.0,
    )
    attach(eng)
    asyncio.run(eng.initialize())

    try:
        app.run(host=args.host, port=args.port, debug=args.verbose)
    finally:
        eng.shutdown()
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
