"""
Layout repair engine for FigJam diagrams.

Agents hand us diagrams with guessed coordinates: shapes piled on top of each
other, boxes too small for their labels, and arrows attached anywhere. Before
a diagram is relayed to the plugin it goes through a deterministic repair
pipeline:

1. Size shapes so their labels fit (sizes only grow).
2. Push overlapping shapes apart with bounded pairwise relaxation.
3. Pick connector magnets from relative shape positions, honoring explicit
   author choices, and widen sides that carry many arrows.
4. Build a single enclosing section around the final geometry.

The pipeline never raises on malformed input; missing fields are computed.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from creator_mcp.models import Bounds, Connection, Diagram, Magnet, Section, Shape, ShapeKind

logger = logging.getLogger("creator-mcp.layout")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class RepairConfig:
    """Tunable constants for the repair pipeline."""
    # Spacing
    min_gap: float = 60            # Minimum gap between shapes (room for arrows)
    arrow_lane_width: float = 30   # Extra size per arrow beyond two on one side
    section_padding: float = 100   # Padding between shapes and the section edge

    # Text sizing
    char_width: float = 8
    text_length_cap: int = 20      # Long labels stop growing the box past this
    h_padding: float = 30
    v_padding: float = 20
    line_height: float = 20

    # Section floor
    min_section_width: float = 400
    min_section_height: float = 300

    # Algorithm tuning
    max_iterations: int = 100      # Hard cap on overlap-resolution passes
    push_bias: float = 10          # Added to each half-push to avoid boundary ping-pong
    max_magnets_per_side: int = 2  # Connections a side holds before it is widened

    default_section_name: str = "Diagram"


# Minimum (width, height) per shape kind. Non-rectangular kinds need more area
# to inscribe the same text.
_KIND_FLOORS: dict[ShapeKind, tuple[float, float]] = {
    ShapeKind.RECTANGLE: (140, 50),
    ShapeKind.DIAMOND: (140, 80),
    ShapeKind.ELLIPSE: (120, 50),
}


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

@dataclass
class RepairReport:
    """Diagnostics collected while repairing a diagram."""
    iterations: int = 0
    residual_overlaps: int = 0
    moved_shapes: int = 0
    resized_shapes: int = 0
    skipped_connections: int = 0
    dropped_records: int = 0
    grown_sides: list[tuple[str, str, int]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "iterations": self.iterations,
            "residual_overlaps": self.residual_overlaps,
            "moved_shapes": self.moved_shapes,
            "resized_shapes": self.resized_shapes,
            "skipped_connections": self.skipped_connections,
            "dropped_records": self.dropped_records,
            "grown_sides": [
                {"shape": sid, "side": side, "connections": count}
                for sid, side, count in self.grown_sides
            ],
        }


@dataclass
class RepairResult:
    diagram: Diagram
    report: RepairReport

    def to_dict(self) -> dict[str, Any]:
        return self.diagram.to_dict()


# ---------------------------------------------------------------------------
# Geometry primitives
# ---------------------------------------------------------------------------

def estimate_shape_size(
    text: str,
    kind: ShapeKind = ShapeKind.RECTANGLE,
    config: Optional[RepairConfig] = None,
) -> tuple[float, float]:
    """Return the minimum (width, height) that fits *text* inside a *kind* shape."""
    cfg = config or RepairConfig()
    effective_length = min(len(text or ""), cfg.text_length_cap)
    text_width = effective_length * cfg.char_width
    floor_w, floor_h = _KIND_FLOORS.get(kind, _KIND_FLOORS[ShapeKind.RECTANGLE])
    width = max(floor_w, text_width + cfg.h_padding)
    height = max(floor_h, cfg.line_height + cfg.v_padding)
    return width, height


def shapes_overlap(a: Shape, b: Shape, gap: float = 60) -> bool:
    """True unless *a* and *b* are separated by more than *gap* on some axis."""
    return a.bounds.intersects(b.bounds, gap)


def find_overlapping_pairs(shapes: list[Shape], gap: float = 60) -> list[tuple[str, str]]:
    """Return id pairs of shapes that overlap, in scan order."""
    pairs: list[tuple[str, str]] = []
    for i in range(len(shapes)):
        for j in range(i + 1, len(shapes)):
            if shapes_overlap(shapes[i], shapes[j], gap):
                pairs.append((shapes[i].id, shapes[j].id))
    return pairs


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------

def size_shapes(shapes: list[Shape], config: Optional[RepairConfig] = None) -> int:
    """Grow every shape to fit its label. Returns the number of shapes resized."""
    cfg = config or RepairConfig()
    resized = 0
    for shape in shapes:
        min_w, min_h = estimate_shape_size(shape.text, shape.kind, cfg)
        new_w = max(shape.width, min_w)
        new_h = max(shape.height, min_h)
        if (new_w, new_h) != (shape.width, shape.height):
            resized += 1
        shape.width = new_w
        shape.height = new_h
    return resized


def resolve_overlaps(shapes: list[Shape], config: Optional[RepairConfig] = None) -> int:
    """Push apart overlapping shapes in place.

    Each pass visits every unordered pair in insertion order. An overlapping
    pair is separated along the axis that needs the smaller displacement,
    each shape moving half the deficit plus ``push_bias`` away from the
    other. Exact ties between the axes push vertically; coincident centers
    push the first shape of the pair in the positive direction.

    Args:
        shapes: Shapes to separate (mutated).
        config: Gap, bias and iteration cap.

    Returns:
        Number of passes performed. A pass that finds no overlap ends the
        loop, so a clean input costs exactly one pass. If the cap is hit,
        residual overlaps may remain.
    """
    cfg = config or RepairConfig()
    gap = cfg.min_gap
    iterations = 0
    has_overlap = True

    while has_overlap and iterations < cfg.max_iterations:
        has_overlap = False
        iterations += 1

        for i in range(len(shapes)):
            for j in range(i + 1, len(shapes)):
                a, b = shapes[i], shapes[j]
                if not shapes_overlap(a, b, gap):
                    continue
                has_overlap = True

                a_bounds, b_bounds = a.bounds, b.bounds
                dx = b_bounds.cx - a_bounds.cx
                dy = b_bounds.cy - a_bounds.cy
                overlap_x = (a.width / 2 + b.width / 2 + gap) - abs(dx)
                overlap_y = (a.height / 2 + b.height / 2 + gap) - abs(dy)

                if overlap_x < overlap_y:
                    push = overlap_x / 2 + cfg.push_bias
                    if dx > 0:
                        a.x -= push
                        b.x += push
                    else:
                        a.x += push
                        b.x -= push
                else:
                    push = overlap_y / 2 + cfg.push_bias
                    if dy > 0:
                        a.y -= push
                        b.y += push
                    else:
                        a.y += push
                        b.y -= push

    return iterations


def choose_magnets(from_bounds: Bounds, to_bounds: Bounds) -> tuple[Magnet, Magnet]:
    """Pick (fromMagnet, toMagnet) from the relative position of two shapes.

    A strictly dominant vertical offset gives a vertical pair; everything
    else, including exact diagonals, connects horizontally.
    """
    dx = to_bounds.cx - from_bounds.cx
    dy = to_bounds.cy - from_bounds.cy
    if abs(dy) > abs(dx):
        source = Magnet.BOTTOM if dy > 0 else Magnet.TOP
    else:
        source = Magnet.RIGHT if dx > 0 else Magnet.LEFT
    return source, source.opposite


def assign_magnets(
    diagram: Diagram,
) -> tuple[dict[str, dict[Magnet, int]], int]:
    """Give every resolvable connection concrete magnets.

    Explicit sides supplied by the author are kept (normalized to upper
    case); ``AUTO``, empty and unrecognized values are computed. Connections
    whose endpoints are missing are left untouched.

    Returns:
        (per-shape side usage counts, number of skipped connections).
    """
    by_id = diagram.shape_index()
    usage: dict[str, dict[Magnet, int]] = {
        sid: {side: 0 for side in Magnet} for sid in by_id
    }
    skipped = 0

    for conn in diagram.connections:
        src = by_id.get(conn.source)
        dst = by_id.get(conn.target)
        if src is None or dst is None:
            skipped += 1
            continue

        ideal_from, ideal_to = choose_magnets(src.bounds, dst.bounds)
        from_magnet = Magnet.parse(conn.from_magnet) or ideal_from
        to_magnet = Magnet.parse(conn.to_magnet) or ideal_to
        conn.from_magnet = from_magnet.value
        conn.to_magnet = to_magnet.value

        usage[conn.source][from_magnet] += 1
        usage[conn.target][to_magnet] += 1

    return usage, skipped


def grow_congested_shapes(
    diagram: Diagram,
    usage: dict[str, dict[Magnet, int]],
    config: Optional[RepairConfig] = None,
) -> list[tuple[str, str, int]]:
    """Widen shapes whose sides carry more arrows than fit side by side.

    Sides TOP/BOTTOM grow the width, LEFT/RIGHT grow the height, by one
    lane per connection beyond ``max_magnets_per_side``. Position is kept.

    Returns:
        (shape id, side, connection count) for every side that grew.
    """
    cfg = config or RepairConfig()
    grown: list[tuple[str, str, int]] = []
    for sid, shape in diagram.shape_index().items():
        for side in Magnet:
            count = usage.get(sid, {}).get(side, 0)
            if count <= cfg.max_magnets_per_side:
                continue
            extra = (count - cfg.max_magnets_per_side) * cfg.arrow_lane_width
            if side in (Magnet.TOP, Magnet.BOTTOM):
                shape.width += extra
            else:
                shape.height += extra
            grown.append((sid, side.value, count))
    return grown


def compute_section(
    shapes: list[Shape],
    name: str,
    config: Optional[RepairConfig] = None,
) -> Optional[Section]:
    """Build the section enclosing *shapes* plus padding, or None if empty."""
    if not shapes:
        return None
    cfg = config or RepairConfig()
    pad = cfg.section_padding

    min_x = min(s.x for s in shapes)
    min_y = min(s.y for s in shapes)
    max_x = max(s.x + s.width for s in shapes)
    max_y = max(s.y + s.height for s in shapes)

    return Section(
        name=name,
        x=min_x - pad,
        y=min_y - pad,
        width=max((max_x - min_x) + pad * 2, cfg.min_section_width),
        height=max((max_y - min_y) + pad * 2, cfg.min_section_height),
    )


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

def repair_diagram(
    diagram: Union[Diagram, dict[str, Any]],
    title: Optional[str] = None,
    config: Optional[RepairConfig] = None,
) -> RepairResult:
    """Return a corrected copy of *diagram*.

    The caller's object is never mutated. Input sections are discarded and
    exactly one section is rebuilt around the final shapes (none when there
    are no shapes). The section is named *title*, else the first input
    section's name, else ``config.default_section_name``.
    """
    cfg = config or RepairConfig()
    if isinstance(diagram, Diagram):
        work = copy.deepcopy(diagram)
    else:
        work = Diagram.from_dict(copy.deepcopy(diagram))

    report = RepairReport(dropped_records=work.dropped)
    if work.dropped:
        logger.warning("Dropped %d malformed diagram record(s)", work.dropped)

    name = title or (work.sections[0].name if work.sections else "") or cfg.default_section_name
    work.sections = []

    report.resized_shapes = size_shapes(work.shapes, cfg)

    before = [(s.x, s.y) for s in work.shapes]
    report.iterations = resolve_overlaps(work.shapes, cfg)

    usage, report.skipped_connections = assign_magnets(work)
    report.grown_sides = grow_congested_shapes(work, usage, cfg)
    if report.grown_sides:
        # Growth can eat into the gap to a neighbour; settle again.
        report.iterations += resolve_overlaps(work.shapes, cfg)

    report.moved_shapes = sum(
        1 for s, pos in zip(work.shapes, before) if (s.x, s.y) != pos
    )
    report.residual_overlaps = len(find_overlapping_pairs(work.shapes, cfg.min_gap))

    section = compute_section(work.shapes, name, cfg)
    if section is not None:
        work.sections.append(section)

    logger.info(
        "Repaired diagram: %d shapes, %d overlap iterations, %d moved, "
        "%d resized, %d skipped connections",
        len(work.shapes), report.iterations, report.moved_shapes,
        report.resized_shapes, report.skipped_connections,
    )
    if report.residual_overlaps:
        logger.warning(
            "%d overlapping pair(s) remain after %d iterations",
            report.residual_overlaps, report.iterations,
        )

    return RepairResult(diagram=work, report=report)
