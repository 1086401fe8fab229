"""
Diagram templates: build starter flowcharts and mind maps from short inputs.

Templates only place shapes roughly; the repair engine fixes sizes, spacing
and magnets before anything reaches the plugin.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from creator_mcp.models import Connection, Diagram, Section, Shape, ShapeKind


@dataclass
class TemplateConfig:
    """Placement constants for the built-in templates."""
    column_x: float = 250          # x of process steps
    decision_x: float = 275        # x of decision diamonds (narrower, so shifted)
    terminal_x: float = 300        # x of start/end ellipses
    first_step_y: float = 120
    step_spacing: float = 100
    decision_spacing: float = 130
    max_title_length: int = 50
    max_branches: int = 6


_BRANCH_SLOTS: list[tuple[float, float]] = [
    (80, 50), (560, 50), (80, 380), (560, 380), (80, 215), (560, 215),
]

_BRANCH_COLORS: list[tuple[str, str]] = [
    ("lightGreen", "green"),
    ("lightOrange", "orange"),
    ("lightPurple", "purple"),
    ("lightBlue", "blue"),
    ("lightGray", "gray"),
]


def _step_label(step: dict[str, Any], index: int) -> str:
    return step.get("text") or step.get("label") or f"Step {index + 1}"


def generate_flowchart(
    title: str,
    steps: Optional[list[dict[str, Any]]] = None,
    config: Optional[TemplateConfig] = None,
) -> Diagram:
    """Build a top-to-bottom flowchart: start, one node per step, end.

    Steps with ``type == "decision"`` become diamonds; everything else is a
    process rectangle. Consecutive nodes are chained BOTTOM -> TOP. With no
    steps only the start node is emitted.
    """
    cfg = config or TemplateConfig()
    d = Diagram(sections=[Section(name=(title or "Flowchart")[: cfg.max_title_length])])
    d.shapes.append(Shape(
        id="start", x=cfg.terminal_x, y=30, width=120, height=50,
        kind=ShapeKind.ELLIPSE, text="Start", fill="lightGreen", stroke="green",
    ))
    if not steps:
        return d

    y = cfg.first_step_y
    prev_id = "start"
    for i, step in enumerate(steps):
        step_id = f"step_{i}"
        is_decision = step.get("type") == "decision"
        if is_decision:
            shape = Shape(
                id=step_id, x=cfg.decision_x, y=y, width=170, height=90,
                kind=ShapeKind.DIAMOND, text=_step_label(step, i),
                fill="lightOrange", stroke="orange",
            )
        else:
            shape = Shape(
                id=step_id, x=cfg.column_x, y=y, width=200, height=60,
                kind=ShapeKind.RECTANGLE, text=_step_label(step, i),
                fill="lightBlue", stroke="blue",
            )
        d.shapes.append(shape)
        d.connections.append(Connection(prev_id, step_id, "BOTTOM", "TOP"))
        prev_id = step_id
        y += cfg.decision_spacing if is_decision else cfg.step_spacing

    d.shapes.append(Shape(
        id="end", x=cfg.terminal_x, y=y, width=120, height=50,
        kind=ShapeKind.ELLIPSE, text="End", fill="lightPurple", stroke="purple",
    ))
    d.connections.append(Connection(prev_id, "end", "BOTTOM", "TOP"))
    d.sections[0].height = y + 100
    return d


def generate_mindmap(
    central_topic: str,
    branches: Optional[list[str]] = None,
    config: Optional[TemplateConfig] = None,
) -> Diagram:
    """Build a mind map: a central ellipse with up to six branches around it.

    Branch magnets are left to the repair engine.
    """
    cfg = config or TemplateConfig()
    d = Diagram(sections=[Section(name=central_topic, width=800, height=500)])
    d.shapes.append(Shape(
        id="center", x=320, y=200, width=160, height=80,
        kind=ShapeKind.ELLIPSE, text=central_topic,
        fill="blue", stroke="blue", text_fill="white",
    ))

    for i, branch in enumerate((branches or [])[: min(cfg.max_branches, len(_BRANCH_SLOTS))]):
        x, y = _BRANCH_SLOTS[i]
        fill, stroke = _BRANCH_COLORS[i % len(_BRANCH_COLORS)]
        branch_id = f"branch_{i}"
        d.shapes.append(Shape(
            id=branch_id, x=x, y=y, width=140, height=50,
            text=branch, fill=fill, stroke=stroke,
        ))
        d.connections.append(Connection("center", branch_id))
    return d
