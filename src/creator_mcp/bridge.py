"""
Bridge between MCP tool calls and connected FigJam plugins.

Outbound: ``send_to_plugin`` repairs diagram payloads and delivers commands
over the plugin's WebSocket, or queues them until the plugin joins.

Inbound: ``handle_plugin_message`` implements the small plugin protocol
(``join`` / ``ping`` / ``ack``).
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

from creator_mcp.layout_engine import RepairConfig, repair_diagram
from creator_mcp.sessions import Channel, PluginSession, SessionStore, normalize_code

logger = logging.getLogger("creator-mcp.bridge")

CREATE_DIAGRAM = "create-diagram"


def prepare_command(command: dict[str, Any], config: Optional[RepairConfig] = None) -> dict[str, Any]:
    """Return *command* with any diagram payload replaced by its repaired form."""
    if command.get("type") != CREATE_DIAGRAM or not command.get("data"):
        return command
    logger.debug("Validating diagram before sending")
    result = repair_diagram(command["data"], title=command.get("title"), config=config)
    return {**command, "data": result.to_dict()}


async def send_to_plugin(
    store: SessionStore,
    code: Optional[str],
    command: dict[str, Any],
    config: Optional[RepairConfig] = None,
) -> bool:
    """Deliver *command* to the plugin for *code*.

    Returns True when the command went out over an open channel, False when
    it was queued for later delivery.
    """
    key = normalize_code(code)
    processed = prepare_command(command, config)

    session = store.get(key)
    channel = session.channel if session else None
    if channel is not None:
        try:
            await channel.send_text(json.dumps(processed))
        except Exception as exc:  # noqa: BLE001 - any transport failure means "queue it"
            logger.warning("Send to session %s failed (%s); queueing", key, exc)
            store.detach(key, channel)
        else:
            logger.info("Sent %s command to session %s", processed.get("type"), key)
            return True

    if store.enqueue(key, processed):
        logger.info("Queued %s command for session %s (plugin not connected)", processed.get("type"), key)
    else:
        logger.warning("Dropped %s command for unknown session %s", processed.get("type"), key)
    return False


async def handle_plugin_message(
    store: SessionStore,
    channel: Channel,
    raw: str,
    current_code: Optional[str],
) -> Optional[str]:
    """Process one message from a plugin socket.

    Returns the session code the socket is bound to after the message.
    """
    try:
        msg = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.error("Error parsing plugin message: %s", exc)
        return current_code
    if not isinstance(msg, dict):
        logger.error("Ignoring non-object plugin message")
        return current_code

    msg_type = msg.get("type")
    if msg_type == "join":
        code = normalize_code(msg.get("code") if isinstance(msg.get("code"), str) else None)
        attached = store.attach(code, channel)
        if attached is None:
            await channel.send_text(json.dumps({"type": "error", "message": "Session not found"}))
            return current_code
        _, pending = attached
        logger.info("Plugin joined session %s", code)
        await channel.send_text(json.dumps({"type": "joined", "code": code}))
        for cmd in pending:
            await channel.send_text(json.dumps(cmd))
        if pending:
            logger.info("Sent %d pending command(s) to session %s", len(pending), code)
        return code

    if msg_type == "ping":
        if current_code:
            store.touch(current_code)
        await channel.send_text(json.dumps({"type": "pong"}))
    elif msg_type == "ack":
        logger.info("Command acknowledged: %s", msg.get("commandId"))
    else:
        logger.debug("Ignoring plugin message of type %r", msg_type)
    return current_code


async def close_stale_sessions(store: SessionStore) -> list[PluginSession]:
    """Expire idle sessions and close their sockets."""
    stale = store.expire()
    for session in stale:
        logger.info("Cleaning up stale session: %s", session.code)
        if session.channel is not None:
            try:
                await session.channel.close()
            except Exception as exc:  # noqa: BLE001 - socket may already be gone
                logger.debug("Closing channel for %s failed: %s", session.code, exc)
    return stale


async def sweep_sessions(store: SessionStore, interval: float) -> None:
    """Run ``close_stale_sessions`` every *interval* seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        await close_stale_sessions(store)
