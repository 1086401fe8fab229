"""Tests for the MCP server tools."""

import asyncio
import json

from creator_mcp.server import (
    _sessions,
    build_rules,
    check_figjam_status,
    create_diagram,
    create_flowchart,
    create_mindmap,
    get_context,
    get_diagram_rules,
    preview_diagram,
    set_context,
)


class FakeChannel:
    def __init__(self) -> None:
        self.sent: list[dict] = []

    async def send_text(self, data: str) -> None:
        self.sent.append(json.loads(data))

    async def close(self, code: int = 1000) -> None:
        pass


def setup_function() -> None:
    """Clear sessions between tests."""
    _sessions.clear()


def _connected() -> tuple[str, FakeChannel]:
    code = _sessions.create().code
    channel = FakeChannel()
    _sessions.attach(code, channel)
    return code, channel


# ===================================================================
# Drawing tools
# ===================================================================

def test_create_flowchart_sends_repaired_diagram() -> None:
    code, channel = _connected()
    result = asyncio.run(create_flowchart(
        code, title="Signup", description="User signup flow",
        steps=[{"text": "Enter email"}, {"text": "Valid?", "type": "decision"}],
    ))
    assert "sent to FigJam" in result
    cmd = channel.sent[0]
    assert cmd["type"] == "create-diagram"
    assert cmd["source"] == "stilla"
    assert cmd["description"] == "User signup flow"
    assert "title" not in cmd
    data = cmd["data"]
    assert list(data) == ["shapes", "connections", "sections"]
    assert [s["id"] for s in data["shapes"]] == ["start", "step_0", "step_1", "end"]
    assert len(data["sections"]) == 1
    assert data["sections"][0]["name"] == "Signup"


def test_create_flowchart_default_title() -> None:
    code, channel = _connected()
    asyncio.run(create_flowchart(code))
    assert channel.sent[0]["data"]["sections"][0]["name"] == "Flowchart"


def test_create_flowchart_queues_when_disconnected() -> None:
    code = _sessions.create().code
    result = asyncio.run(create_flowchart(code, title="Later"))
    assert "queued" in result
    assert len(_sessions.get(code).pending) == 1


def test_create_flowchart_bad_step() -> None:
    code, channel = _connected()
    result = asyncio.run(create_flowchart(code, steps=[{"text": "A", "type": "loop"}]))
    assert result.startswith("Error:")
    assert "unknown type" in result
    assert channel.sent == []


def test_missing_session_code() -> None:
    result = asyncio.run(create_flowchart(""))
    assert result.startswith("Error:")
    assert "session code" in result


def test_unknown_session() -> None:
    result = asyncio.run(create_mindmap("ZZZZZZ", "Topic"))
    assert result == (
        "Error: session 'ZZZZZZ' not found. Ask the user to open the FigJam "
        "Creator plugin and share their session code."
    )


def test_create_mindmap() -> None:
    code, channel = _connected()
    result = asyncio.run(create_mindmap(code.lower(), "Launch", ["Marketing", "Sales"]))
    assert "Mind map 'Launch'" in result
    data = channel.sent[0]["data"]
    assert data["sections"][0]["name"] == "Launch"
    assert all("fromMagnet" in c and "toMagnet" in c for c in data["connections"])


def test_create_mindmap_requires_topic() -> None:
    code, _ = _connected()
    result = asyncio.run(create_mindmap(code, "  "))
    assert "central_topic" in result


def test_create_diagram_keeps_explicit_magnets() -> None:
    code, channel = _connected()
    result = asyncio.run(create_diagram(
        code, title="Custom",
        shapes=[
            {"id": "a", "x": 0, "y": 0, "text": "A"},
            {"id": "b", "x": 0, "y": 300, "text": "B"},
        ],
        connections=[{"from": "a", "to": "b", "fromMagnet": "right"}],
    ))
    assert "Diagram 'Custom'" in result
    conn = channel.sent[0]["data"]["connections"][0]
    assert conn["fromMagnet"] == "RIGHT"
    assert conn["toMagnet"] == "TOP"


def test_create_diagram_rejects_bad_shape() -> None:
    code, _ = _connected()
    result = asyncio.run(create_diagram(code, shapes=[{"id": "a", "type": "star"}]))
    assert "unknown type 'star'" in result
    result = asyncio.run(create_diagram(code, connections=[{"from": "a"}]))
    assert "missing required key 'to'" in result


def test_preview_diagram_returns_report() -> None:
    payload = json.loads(preview_diagram(
        title="Preview",
        shapes=[{"id": "a", "text": "A"}, {"id": "b", "text": "B"}],
    ))
    assert payload["diagram"]["sections"][0]["name"] == "Preview"
    assert payload["report"]["residual_overlaps"] == 0
    assert payload["report"]["moved_shapes"] == 2
    assert payload["report"]["resized_shapes"] == 2


def test_preview_diagram_validation_error() -> None:
    assert preview_diagram(shapes="nope").startswith("Error:")


# ===================================================================
# Status and context
# ===================================================================

def test_check_status() -> None:
    code = _sessions.create().code
    assert "not connected" in check_figjam_status(code)
    _sessions.enqueue(code, {"type": "x"})
    assert "(1 queued)" in check_figjam_status(code)
    _sessions.attach(code, FakeChannel())
    assert check_figjam_status(code) == f"Session '{code}' is connected and ready."
    assert "not found" in check_figjam_status("ZZZZZZ")
    assert "6 letters/digits" in check_figjam_status("abc")


def test_set_and_get_context() -> None:
    code, channel = _connected()
    result = asyncio.run(set_context(
        code, client_name="Acme", summary="Renewal call", metadata={"date": "2026-10-01"},
    ))
    assert result == f"Context set for session '{code}' (Acme)."
    assert channel.sent[0]["type"] == "context-updated"
    assert channel.sent[0]["clientName"] == "Acme"

    ctx = json.loads(get_context(code))
    assert ctx["clientName"] == "Acme"
    assert ctx["summary"] == "Renewal call"
    assert ctx["metadata"] == {"date": "2026-10-01"}


def test_get_context_empty() -> None:
    code = _sessions.create().code
    assert get_context(code) == f"No context set for session '{code}'."


def test_set_context_rejects_bad_metadata() -> None:
    code, _ = _connected()
    assert asyncio.run(set_context(code, metadata=["x"])).startswith("Error:")


# ===================================================================
# Rules
# ===================================================================

def test_rules_mention_enforced_constants() -> None:
    rules = get_diagram_rules()
    assert rules == build_rules()
    assert "60px" in rules
    assert "diamond: at least 140 x 80" in rules
    assert "TOP" in rules and "AUTO" in rules
