"""Tests for the flowchart and mind map templates."""

from creator_mcp.layout_engine import find_overlapping_pairs, repair_diagram
from creator_mcp.models import ShapeKind
from creator_mcp.templates import TemplateConfig, generate_flowchart, generate_mindmap


# ===================================================================
# Flowchart
# ===================================================================

class TestFlowchart:
    def test_start_steps_end(self) -> None:
        d = generate_flowchart("Onboarding", [
            {"text": "Sign up"},
            {"text": "Verified?", "type": "decision"},
            {"label": "Welcome"},
        ])
        assert [s.id for s in d.shapes] == ["start", "step_0", "step_1", "step_2", "end"]
        assert d.shapes[0].kind is ShapeKind.ELLIPSE
        assert d.shapes[1].kind is ShapeKind.RECTANGLE
        assert d.shapes[2].kind is ShapeKind.DIAMOND
        assert d.shapes[3].text == "Welcome"
        assert d.shapes[-1].text == "End"

    def test_connections_chain_bottom_to_top(self) -> None:
        d = generate_flowchart("F", [{"text": "A"}, {"text": "B"}])
        pairs = [(c.source, c.target) for c in d.connections]
        assert pairs == [("start", "step_0"), ("step_0", "step_1"), ("step_1", "end")]
        for c in d.connections:
            assert (c.from_magnet, c.to_magnet) == ("BOTTOM", "TOP")

    def test_vertical_spacing(self) -> None:
        d = generate_flowchart("F", [{"text": "A", "type": "decision"}, {"text": "B"}])
        ys = {s.id: s.y for s in d.shapes}
        assert ys["step_0"] == 120
        assert ys["step_1"] == 250
        assert ys["end"] == 350
        assert d.sections[0].height == 450

    def test_default_step_label(self) -> None:
        d = generate_flowchart("F", [{}, {"type": "process"}])
        assert [s.text for s in d.shapes[1:3]] == ["Step 1", "Step 2"]

    def test_no_steps_emits_start_only(self) -> None:
        d = generate_flowchart("Empty", [])
        assert [s.id for s in d.shapes] == ["start"]
        assert d.connections == []

    def test_title_is_truncated(self) -> None:
        d = generate_flowchart("x" * 80, [{"text": "A"}])
        assert d.sections[0].name == "x" * 50
        short = generate_flowchart("y" * 20, [], TemplateConfig(max_title_length=5))
        assert short.sections[0].name == "yyyyy"

    def test_repaired_flowchart_is_clean(self) -> None:
        d = generate_flowchart("F", [{"text": f"Step number {i}"} for i in range(5)])
        result = repair_diagram(d)
        assert result.report.residual_overlaps == 0
        assert find_overlapping_pairs(result.diagram.shapes, 60) == []
        assert result.diagram.sections[0].name == "F"


# ===================================================================
# Mind map
# ===================================================================

class TestMindmap:
    def test_center_and_branches(self) -> None:
        d = generate_mindmap("Q3 plan", ["Hiring", "Budget", "Roadmap"])
        center = d.shapes[0]
        assert center.id == "center"
        assert center.kind is ShapeKind.ELLIPSE
        assert center.text_fill == "white"
        assert [s.id for s in d.shapes[1:]] == ["branch_0", "branch_1", "branch_2"]
        assert [s.text for s in d.shapes[1:]] == ["Hiring", "Budget", "Roadmap"]
        assert d.sections[0].name == "Q3 plan"

    def test_branches_are_capped(self) -> None:
        d = generate_mindmap("Topic", [f"b{i}" for i in range(10)])
        assert len(d.shapes) == 7
        assert len(d.connections) == 6

    def test_branch_colors_cycle(self) -> None:
        d = generate_mindmap("Topic", [f"b{i}" for i in range(6)])
        assert d.shapes[1].fill == d.shapes[6].fill == "lightGreen"

    def test_magnets_left_to_repair(self) -> None:
        d = generate_mindmap("Topic", ["Left", "Right"])
        assert all(c.from_magnet is None and c.to_magnet is None for c in d.connections)
        result = repair_diagram(d)
        left, right = result.diagram.connections
        assert left.from_magnet == "LEFT"
        assert right.from_magnet == "RIGHT"

    def test_no_branches(self) -> None:
        d = generate_mindmap("Alone")
        assert len(d.shapes) == 1
        assert d.connections == []
