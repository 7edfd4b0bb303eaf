"""Single-button web page.

Each deployed instance serves this page. Clicking the button runs the
provisioning workflow once and shows the child's domain or the failure
message. The page holds no state between runs.
"""

from __future__ import annotations

import html
import logging

import httpx
from fastapi import FastAPI
from fastapi.responses import HTMLResponse, JSONResponse

from adapters.railway_backend import RailwayBackend
from core.config import AppSettings
from core.services.provisioning import provision

logger = logging.getLogger(__name__)


def render_home(settings: AppSettings) -> str:
    level = html.escape(str(settings.level))
    return f'''
<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Let's spin up new service</title>
    <style>
        body {{
            font-family: 'JetBrains Mono', 'SF Mono', 'Menlo', monospace;
            background: #0a0a0a;
            color: #c8c8c8;
            text-align: center;
            padding-top: 10vh;
        }}
        button {{
            background: #27c93f;
            border: none;
            padding: 12px 28px;
            font-size: 16px;
            cursor: pointer;
        }}
        button:disabled {{ background: #333; cursor: wait; }}
        .error {{ color: #ff5f56; }}
        .level {{ color: #61afef; }}
    </style>
</head>
<body>
    <h1>Spin up container!</h1>
    <p class="level">level {level}</p>
    <button id="spawn">Click Me</button>
    <p id="message"></p>
    <script>
        const button = document.getElementById("spawn");
        const message = document.getElementById("message");
        button.addEventListener("click", async () => {{
            button.disabled = true;
            message.className = "";
            message.textContent = "provisioning...";
            try {{
                const res = await fetch("/api/create_container", {{ method: "POST" }});
                const body = await res.json();
                if (body.ok) {{
                    message.innerHTML = "";
                    const link = document.createElement("a");
                    link.href = "https://" + body.domain;
                    link.textContent = body.domain;
                    message.appendChild(link);
                }} else {{
                    message.className = "error";
                    message.textContent = body.error;
                }}
            }} catch (err) {{
                message.className = "error";
                message.textContent = String(err);
            }} finally {{
                button.disabled = false;
            }}
        }});
    </script>
</body>
</html>'''


def create_app(
    settings: AppSettings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the app around an already-validated `AppSettings`."""

    app = FastAPI(title="Replicator")

    @app.get("/", response_class=HTMLResponse)
    async def home():
        return render_home(settings)

    @app.post("/api/create_container")
    async def create_container():
        async with RailwayBackend(settings, transport=transport) as backend:
            outcome = await provision(settings, backend)

        if outcome.ok:
            return {"ok": True, "domain": outcome.domain, "service": outcome.identity.name}

        assert outcome.error is not None
        logger.warning("create_container failed: %s", outcome.error)
        return JSONResponse(
            status_code=502,
            content={
                "ok": False,
                "error": str(outcome.error),
                "kind": outcome.error.kind.value,
                "operation": outcome.error.operation,
            },
        )

    @app.get("/health")
    async def health():
        return {"status": "ok", "level": settings.level}

    return app
