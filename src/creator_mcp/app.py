"""
HTTP + WebSocket transport for the creator MCP server.

It provides:
- the MCP streamable-HTTP endpoint at /mcp
- session and context routes used by the FigJam plugin
- the /ws socket the plugin keeps open to receive commands
- open CORS, since the plugin runs inside figma.com
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import sys
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from creator_mcp.bridge import handle_plugin_message, sweep_sessions
from creator_mcp.config import ServerConfig
from creator_mcp.server import VERSION, _sessions, mcp, push_context
from creator_mcp.validation import ValidationError, validate_log_level, validate_port

logger = logging.getLogger("creator-mcp")


class ContextRequest(BaseModel):
    transcript: Optional[str] = None
    clientName: Optional[str] = None
    projectName: Optional[str] = None
    summary: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


def create_app(config: Optional[ServerConfig] = None) -> FastAPI:
    """Build the ASGI app; the MCP session manager runs inside its lifespan."""
    cfg = config or ServerConfig()
    _sessions.timeout = cfg.session_timeout
    mcp_app = mcp.streamable_http_app()

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper = asyncio.create_task(sweep_sessions(_sessions, cfg.sweep_interval))
        try:
            async with mcp.session_manager.run():
                yield
        finally:
            sweeper.cancel()
            try:
                await sweeper
            except asyncio.CancelledError:
                pass

    app = FastAPI(title="Creator MCP Server", version=VERSION, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Mcp-Session-Id"],
        expose_headers=["Mcp-Session-Id"],
    )

    # --- Discovery / health ---

    @app.get("/.well-known/mcp")
    @app.get("/.well-known/mcp.json")
    async def discovery():
        return {
            "name": "creator-mcp",
            "version": VERSION,
            "transport": "streamable_http",
            "endpoint": "/mcp",
        }

    @app.get("/health")
    async def health():
        return {"status": "ok", "sessions": len(_sessions), "version": VERSION}

    # --- Plugin sessions ---

    @app.post("/session")
    async def create_session():
        session = _sessions.create()
        logger.info("Created new session: %s", session.code)
        return {"code": session.code}

    @app.get("/session/{code}")
    async def session_info(code: str):
        session = _sessions.get(code)
        if session is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return {
            "code": session.code,
            "connected": session.connected,
            "pendingCommands": len(session.pending),
            "createdAt": session.created_at,
        }

    @app.get("/context/{code}")
    async def read_context(code: str):
        context = _sessions.get_context(code)
        if context is None:
            return {"hasContext": False}
        return {"hasContext": True, **context.to_dict()}

    @app.post("/context/{code}")
    async def write_context(code: str, body: ContextRequest):
        session = _sessions.get(code)
        if session is None:
            raise HTTPException(status_code=404, detail="Session not found")
        await push_context(
            session.code,
            transcript=body.transcript,
            client_name=body.clientName,
            project_name=body.projectName,
            summary=body.summary,
            metadata=body.metadata,
        )
        return {"success": True}

    # --- Plugin socket ---

    @app.websocket("/ws")
    async def plugin_socket(websocket: WebSocket):
        await websocket.accept()
        logger.info("WebSocket connected")
        code: Optional[str] = None
        try:
            while True:
                raw = await websocket.receive_text()
                code = await handle_plugin_message(_sessions, websocket, raw, code)
        except WebSocketDisconnect:
            logger.info("WebSocket closed for session: %s", code)
        finally:
            if code:
                _sessions.detach(code, websocket)

    @app.get("/")
    async def root():
        return RedirectResponse(url="/mcp")

    # Must come last: the MCP app serves /mcp under the root mount.
    app.mount("/", mcp_app)
    return app


# ===================================================================
# Entry point
# ===================================================================

def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="creator-mcp",
        description="Relay agent diagrams to the FigJam Creator plugin.",
    )
    parser.add_argument("--host", help="Bind address (env HOST)")
    parser.add_argument("--port", type=int, help="Port (env PORT)")
    parser.add_argument("--log-level", help="Logging level (env LOG_LEVEL)")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    """Run the HTTP + WebSocket server."""
    import uvicorn

    args = _parse_args(argv)
    try:
        cfg = ServerConfig.from_env()
        if args.host:
            cfg.host = args.host
        if args.port is not None:
            cfg.port = validate_port(args.port)
        if args.log_level:
            cfg.log_level = validate_log_level(args.log_level)
    except ValidationError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        sys.exit(2)

    logging.basicConfig(
        level=cfg.log_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info("Creator MCP Server v%s on http://%s:%d (MCP /mcp, WebSocket /ws)",
                VERSION, cfg.host, cfg.port)
    uvicorn.run(create_app(cfg), host=cfg.host, port=cfg.port, log_level=cfg.log_level.lower())


if __name__ == "__main__":
    main()
