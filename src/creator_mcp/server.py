"""
Creator MCP Server — draw diagrams in FigJam via Model Context Protocol.

Agents call the tools below with the session code a user reads off the
FigJam Creator plugin. Every diagram is repaired (sizes, spacing, magnets,
enclosing section) before it is relayed to the plugin.

Tools:
  1. create_flowchart    — start/steps/end flowchart from a list of steps
  2. create_mindmap      — central topic with up to six branches
  3. create_diagram      — custom shapes and connections
  4. preview_diagram     — repair a diagram and return it without sending
  5. check_figjam_status — is the plugin for a session connected?
  6. set_context         — push meeting context to a session
  7. get_context         — read a session's context
  8. get_diagram_rules   — formatting rules the repair engine enforces
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from creator_mcp.bridge import CREATE_DIAGRAM, send_to_plugin
from creator_mcp.layout_engine import RepairConfig, estimate_shape_size, repair_diagram
from creator_mcp.models import Section, ShapeKind
from creator_mcp.sessions import SessionStore
from creator_mcp.templates import generate_flowchart, generate_mindmap
from creator_mcp.validation import (
    ValidationError,
    validate_branches,
    validate_connection_dict,
    validate_flowchart_step,
    validate_list,
    validate_metadata,
    validate_non_empty_string,
    validate_optional_string,
    validate_session_code,
    validate_shape_dict,
)

VERSION = "2.0.0"
SOURCE = "stilla"

# ---------------------------------------------------------------------------
# Logging — FastMCP logs every request at INFO on stderr; keep it quiet.
# ---------------------------------------------------------------------------
logging.getLogger("mcp.server").setLevel(logging.WARNING)
logger = logging.getLogger("creator-mcp")

# ---------------------------------------------------------------------------
# MCP Server
# ---------------------------------------------------------------------------
mcp = FastMCP(
    "creator-mcp",
    instructions=(
        "MCP server for drawing diagrams in FigJam through the Creator plugin.\n\n"
        "Every tool that draws needs the 6-character session_code shown in the\n"
        "user's FigJam Creator plugin. Ask for it if you do not have it.\n\n"
        "- create_flowchart: steps in order; type 'decision' makes a diamond.\n"
        "- create_mindmap: one central topic, up to 6 branches.\n"
        "- create_diagram: full control over shapes and connections.\n"
        "- Call get_diagram_rules before create_diagram.\n"
        "- Layout is repaired automatically: shapes are resized to fit text,\n"
        "  pushed apart, magnets are chosen, and a section is drawn around\n"
        "  everything. Explicit magnets are always kept.\n"
    ),
)

# Plugin sessions, shared with the HTTP/WebSocket transport
_sessions = SessionStore()
_repair_config = RepairConfig()


def _not_found_message(code: str) -> str:
    return (
        f"session '{code}' not found. Ask the user to open the FigJam "
        "Creator plugin and share their session code."
    )


def _not_found(code: str) -> str:
    return f"Error: {_not_found_message(code)}"


def _require_session(session_code: Any) -> str:
    code = validate_session_code(session_code)
    if code not in _sessions:
        raise ValidationError(_not_found_message(code))
    return code


def _delivery(sent: bool, what: str) -> str:
    if sent:
        return f"{what} sent to FigJam. It should appear on the canvas now."
    return f"{what} queued. It will appear when the FigJam plugin reconnects."


# ===================================================================
# RESOURCES
# ===================================================================

def build_rules(config: RepairConfig | None = None) -> str:
    """Render the formatting rules the repair engine enforces."""
    cfg = config or _repair_config
    floors = {
        kind.value: estimate_shape_size("", kind, cfg) for kind in ShapeKind
    }
    floor_lines = "\n".join(
        f"- {name}: at least {w:g} x {h:g}" for name, (w, h) in floors.items()
    )
    return f"""# FigJam Diagram Rules

## Guarantees (enforced automatically)
1. Text is never truncated: shapes grow to fit their labels.
2. Shapes never overlap: at least {cfg.min_gap:g}px between any two shapes.
3. Every connection gets explicit magnets.
4. One section is drawn around the whole diagram ({cfg.section_padding:g}px padding).

## Shape sizing
- Width: min(characters, {cfg.text_length_cap}) x {cfg.char_width:g} + {cfg.h_padding:g} pixels
{floor_lines}
- Keep decision text short; diamonds have less room for text.

## Connection magnets
Use fromMagnet/toMagnet with "TOP", "BOTTOM", "LEFT", "RIGHT".
Omit them (or use "AUTO") to let the server choose from shape positions:
- Target mostly below: exit BOTTOM, enter TOP
- Target mostly above: exit TOP, enter BOTTOM
- Otherwise: exit RIGHT/LEFT toward the target, enter on the opposite side
More than {cfg.max_magnets_per_side} arrows on one side widen that side by {cfg.arrow_lane_width:g}px each.

## Colors
- Start/End: fill "lightGreen"/"lightPurple", stroke "green"/"purple"
- Process: fill "lightBlue", stroke "blue"
- Decision: fill "lightOrange", stroke "orange"
- Error: fill "lightRed", stroke "red"

## Shape properties
{{
  id: string (unique),
  x: number, y: number,
  width: number, height: number,
  type: "rectangle" | "diamond" | "ellipse",
  text: string (full text),
  fill: string, stroke: string, textFill: string
}}

## Connection properties
{{
  from: string (shape id),
  to: string (shape id),
  fromMagnet: "TOP" | "BOTTOM" | "LEFT" | "RIGHT" | "AUTO",
  toMagnet: "TOP" | "BOTTOM" | "LEFT" | "RIGHT" | "AUTO",
  label?: string
}}
"""


@mcp.resource("creator://guide/rules")
def rules_resource() -> str:
    """Formatting rules for FigJam diagrams."""
    return build_rules()


# ===================================================================
# TOOLS
# ===================================================================

@mcp.tool()
async def create_flowchart(
    session_code: str,
    title: str = "",
    description: str = "",
    steps: list[dict[str, Any]] | None = None,
) -> str:
    """Create a flowchart diagram in FigJam.

    Args:
        session_code: The session code from the FigJam Creator plugin (6 characters).
        title: Title for the flowchart.
        description: Description of the flow to create.
        steps: Optional list of steps: {"text": "...", "type": "process" | "decision"}.

    Returns:
        Delivery status.
    """
    try:
        code = _require_session(session_code)
        steps = validate_list(steps or [], "steps")
        for i, step in enumerate(steps):
            validate_flowchart_step(step, i)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    d = generate_flowchart(title or description or "Flowchart", steps)
    d.sections[0].name = title or "Flowchart"
    command: dict[str, Any] = {"type": CREATE_DIAGRAM, "data": d.to_dict(), "source": SOURCE}
    if description:
        command["description"] = description
    sent = await send_to_plugin(_sessions, code, command, _repair_config)
    return _delivery(sent, f"Flowchart '{title or 'Flowchart'}'")


@mcp.tool()
async def create_mindmap(
    session_code: str,
    central_topic: str,
    branches: list[str] | None = None,
) -> str:
    """Create a mind map in FigJam with a central topic and branches.

    Args:
        session_code: The session code from the FigJam Creator plugin.
        central_topic: The main topic in the center.
        branches: List of branch topics (up to 6; extras are ignored).
    """
    try:
        code = _require_session(session_code)
        central_topic = validate_non_empty_string(central_topic, "central_topic")
        branches = validate_branches(branches)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    d = generate_mindmap(central_topic, branches)
    command = {"type": CREATE_DIAGRAM, "data": d.to_dict(), "source": SOURCE}
    sent = await send_to_plugin(_sessions, code, command, _repair_config)
    return _delivery(sent, f"Mind map '{central_topic}'")


def _custom_diagram(
    title: str,
    shapes: list[dict[str, Any]] | None,
    connections: list[dict[str, Any]] | None,
) -> dict[str, Any]:
    shapes = validate_list(shapes or [], "shapes")
    connections = validate_list(connections or [], "connections")
    for i, s in enumerate(shapes):
        validate_shape_dict(s, i)
    for i, c in enumerate(connections):
        validate_connection_dict(c, i)
    return {
        "sections": [Section(name=title or "Diagram").to_dict()],
        "shapes": shapes,
        "connections": connections,
    }


@mcp.tool()
async def create_diagram(
    session_code: str,
    title: str = "",
    shapes: list[dict[str, Any]] | None = None,
    connections: list[dict[str, Any]] | None = None,
) -> str:
    """Create a custom diagram in FigJam.

    Call get_diagram_rules first. Shapes are resized to fit their text,
    pushed apart to keep gaps, and connections get magnets automatically.

    Args:
        session_code: The session code from the FigJam Creator plugin.
        title: Title for the diagram section.
        shapes: Shape objects: id, x, y, width, height, type, text, fill, stroke.
        connections: Connection objects: from, to, fromMagnet, toMagnet, label.
    """
    try:
        code = _require_session(session_code)
        title = validate_optional_string(title, "title") or ""
        data = _custom_diagram(title, shapes, connections)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    command = {"type": CREATE_DIAGRAM, "data": data, "source": SOURCE}
    sent = await send_to_plugin(_sessions, code, command, _repair_config)
    return _delivery(sent, f"Diagram '{title or 'Diagram'}'")


@mcp.tool()
def preview_diagram(
    title: str = "",
    shapes: list[dict[str, Any]] | None = None,
    connections: list[dict[str, Any]] | None = None,
) -> str:
    """Repair a diagram and return it as JSON without sending it anywhere.

    Returns:
        JSON with "diagram" (shapes, connections, sections) and "report"
        (iterations, residual overlaps, moved/resized shapes, ...).
    """
    try:
        title = validate_optional_string(title, "title") or ""
        data = _custom_diagram(title, shapes, connections)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    result = repair_diagram(data, config=_repair_config)
    return json.dumps(
        {"diagram": result.to_dict(), "report": result.report.to_dict()},
        indent=2,
    )


@mcp.tool()
def check_figjam_status(session_code: str) -> str:
    """Check whether a FigJam Creator plugin session is connected."""
    try:
        code = validate_session_code(session_code)
    except ValidationError as exc:
        return f"Error: {exc.message}"
    session = _sessions.get(code)
    if session is None:
        return _not_found(code)

    pending = len(session.pending)
    if session.connected:
        suffix = f" ({pending} pending)" if pending else ""
        return f"Session '{code}' is connected and ready.{suffix}"
    suffix = f" ({pending} queued)" if pending else ""
    return f"Session '{code}' exists but the plugin is not connected.{suffix}"


@mcp.tool()
async def set_context(
    session_code: str,
    transcript: str | None = None,
    client_name: str | None = None,
    project_name: str | None = None,
    summary: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> str:
    """Push context (transcript, client info, project details) to a FigJam session.

    Args:
        session_code: The session code.
        transcript: Call transcript or meeting notes.
        client_name: Client or company name.
        project_name: Project or deal name.
        summary: Brief summary.
        metadata: Additional metadata (call date, participants, ...).
    """
    try:
        code = _require_session(session_code)
        for name, value in (
            ("transcript", transcript),
            ("client_name", client_name),
            ("project_name", project_name),
            ("summary", summary),
        ):
            validate_optional_string(value, name)
        metadata = validate_metadata(metadata)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    return await push_context(
        code,
        transcript=transcript,
        client_name=client_name,
        project_name=project_name,
        summary=summary,
        metadata=metadata,
    )


async def push_context(code: str, **fields: Any) -> str:
    """Store context for *code* and notify its plugin."""
    if _sessions.set_context(code, **fields) is None:
        return _not_found(code)
    client_name = fields.get("client_name")
    logger.info("Set context for session %s: %s", code, client_name or "unknown client")
    await send_to_plugin(_sessions, code, {
        "type": "context-updated",
        "hasContext": True,
        "clientName": client_name,
        "projectName": fields.get("project_name"),
        "summary": fields.get("summary"),
    }, _repair_config)
    who = f" ({client_name})" if client_name else ""
    return f"Context set for session '{code}'{who}."


@mcp.tool()
def get_context(session_code: str) -> str:
    """Get the current context for a FigJam session as JSON."""
    try:
        code = validate_session_code(session_code)
    except ValidationError as exc:
        return f"Error: {exc.message}"
    context = _sessions.get_context(code)
    if context is None:
        return f"No context set for session '{code}'."
    return json.dumps(context.to_dict(), indent=2)


@mcp.tool()
def get_diagram_rules() -> str:
    """Get the FigJam diagram formatting rules. Call this before creating diagrams."""
    return build_rules()
