from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from fastapi import Body, FastAPI, HTTPException
from fastapi.responses import HTMLResponse, JSONResponse

from .legacy import upgrade_legacy_markup
from .markup import encode, extract_words, strip_annotations, strip_readings_only
from .pipeline import analyze, build_reading_lookup
from .readings import ReadingLookup
from .tokens import serialize_tokens


@dataclass(slots=True)
class WebConfig:
    host: str = "127.0.0.1"
    port: int = 8765
    readings_path: Path | None = None
    backend: str = "none"
    max_chars: int = 5000


INDEX_HTML = """<!DOCTYPE html>
<html lang="ja">
<head>
  <meta charset="utf-8">
  <title>yomi</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <style>
    body {
      margin: 0 auto;
      max-width: 48rem;
      padding: 1.5rem;
      font-family: -apple-system, BlinkMacSystemFont, "Hiragino Sans", sans-serif;
    }
    textarea { width: 100%; min-height: 8rem; font-size: 1rem; }
    #output { margin-top: 1.5rem; font-size: 1.4rem; line-height: 2.6; }
    .jp-word { cursor: pointer; border-radius: 4px; }
    .jp-word:hover { background: #e0e7ff; }
  </style>
</head>
<body>
  <h1>yomi</h1>
  <textarea id="source" placeholder="私は東京に住んでいます。"></textarea>
  <p>
    <button id="annotate">Annotate</button>
    <label><input type="checkbox" id="furigana" checked> Furigana</label>
  </p>
  <div id="output"></div>
  <script>
    let markup = "";
    async function post(path, payload) {
      const response = await fetch(path, {
        method: "POST",
        headers: {"Content-Type": "application/json"},
        body: JSON.stringify(payload),
      });
      const data = await response.json();
      if (!response.ok) {
        throw new Error(data.detail || response.statusText);
      }
      return data;
    }
    async function render() {
      const output = document.getElementById("output");
      if (!markup) {
        output.innerHTML = "";
        return;
      }
      if (document.getElementById("furigana").checked) {
        output.innerHTML = markup;
      } else {
        output.innerHTML = (await post("/api/strip-readings", {markup})).markup;
      }
    }
    document.getElementById("annotate").addEventListener("click", async () => {
      const text = document.getElementById("source").value;
      try {
        markup = (await post("/api/annotate", {text})).markup;
      } catch (err) {
        markup = "";
        document.getElementById("output").textContent = err.message;
        return;
      }
      await render();
    });
    document.getElementById("furigana").addEventListener("change", render);
  </script>
</body>
</html>
"""


def _string_field(payload: dict[str, object], key: str, *, max_chars: int | None = None) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise HTTPException(status_code=400, detail=f"'{key}' must be a non-empty string.")
    if max_chars is not None and len(value) > max_chars:
        raise HTTPException(
            status_code=400,
            detail=f"'{key}' exceeds the {max_chars} character limit.",
        )
    return value


def create_app(config: WebConfig, lookup: ReadingLookup | None = None) -> FastAPI:
    if lookup is None:
        lookup = build_reading_lookup(readings_path=config.readings_path, backend=config.backend)

    app = FastAPI(title="yomi")

    @app.get("/", response_class=HTMLResponse)
    def index() -> str:
        return INDEX_HTML

    @app.get("/api/health")
    def api_health() -> JSONResponse:
        return JSONResponse({"ok": True, "backend": config.backend, "readings": lookup is not None})

    @app.post("/api/annotate")
    def api_annotate(payload: dict[str, object] = Body(...)) -> JSONResponse:
        text = _string_field(payload, "text", max_chars=config.max_chars)
        tokens = analyze(text, lookup)
        return JSONResponse({"markup": encode(tokens), "tokens": serialize_tokens(tokens)})

    @app.post("/api/strip")
    def api_strip(payload: dict[str, object] = Body(...)) -> JSONResponse:
        markup = _string_field(payload, "markup")
        return JSONResponse({"text": strip_annotations(markup)})

    @app.post("/api/strip-readings")
    def api_strip_readings(payload: dict[str, object] = Body(...)) -> JSONResponse:
        markup = _string_field(payload, "markup")
        return JSONResponse({"markup": strip_readings_only(markup)})

    @app.post("/api/words")
    def api_words(payload: dict[str, object] = Body(...)) -> JSONResponse:
        markup = _string_field(payload, "markup")
        return JSONResponse({"words": extract_words(markup)})

    @app.post("/api/upgrade")
    def api_upgrade(payload: dict[str, object] = Body(...)) -> JSONResponse:
        markup = _string_field(payload, "markup")
        return JSONResponse({"markup": upgrade_legacy_markup(markup, lookup)})

    return app
