"""
Core model classes for FigJam diagrams.

Provides a typed, tolerant API over the JSON-like diagram payloads that an
agent sends (``sections`` / ``shapes`` / ``connections``) and that the FigJam
plugin consumes.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ShapeKind(Enum):
    """Shape kinds understood by the plugin."""
    RECTANGLE = "rectangle"
    DIAMOND = "diamond"
    ELLIPSE = "ellipse"

    @classmethod
    def parse(cls, value: Any) -> "ShapeKind":
        """Map a raw ``type`` value to a kind; unknown values are rectangles."""
        if isinstance(value, str):
            for kind in cls:
                if kind.value == value.strip().lower():
                    return kind
        return cls.RECTANGLE


class Magnet(Enum):
    """Attachment side of a connector on a shape."""
    TOP = "TOP"
    BOTTOM = "BOTTOM"
    LEFT = "LEFT"
    RIGHT = "RIGHT"

    @property
    def opposite(self) -> "Magnet":
        return _OPPOSITE[self]

    @classmethod
    def parse(cls, value: Any) -> Optional["Magnet"]:
        """Return the concrete side for *value*, or None for AUTO/unknown."""
        if not isinstance(value, str):
            return None
        try:
            return cls[value.strip().upper()]
        except KeyError:
            return None


_OPPOSITE = {
    Magnet.TOP: Magnet.BOTTOM,
    Magnet.BOTTOM: Magnet.TOP,
    Magnet.LEFT: Magnet.RIGHT,
    Magnet.RIGHT: Magnet.LEFT,
}

AUTO_MAGNET = "AUTO"


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def _as_float(value: Any, default: float = 0.0) -> float:
    """Coerce *value* to a finite float, falling back to *default*."""
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        val = float(value)
    elif isinstance(value, str):
        try:
            val = float(value)
        except ValueError:
            return default
    else:
        return default
    if not math.isfinite(val):
        return default
    return val


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _as_optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return _as_text(value)


def _clean_number(value: float) -> float | int:
    """Render integral floats as ints so payloads stay tidy."""
    if float(value).is_integer():
        return int(value)
    return value


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

@dataclass
class Bounds:
    """Axis-aligned bounding box."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def cx(self) -> float:
        return self.x + self.width / 2

    @property
    def cy(self) -> float:
        return self.y + self.height / 2

    def intersects(self, other: "Bounds", gap: float = 0) -> bool:
        """Check whether the boxes come closer than *gap* on both axes.

        Boxes that are exactly *gap* apart still count as overlapping.
        """
        return not (
            self.right + gap < other.x
            or other.right + gap < self.x
            or self.bottom + gap < other.y
            or other.bottom + gap < self.y
        )

    def contains(self, other: "Bounds") -> bool:
        return (
            self.x <= other.x
            and self.y <= other.y
            and other.right <= self.right
            and other.bottom <= self.bottom
        )


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

_SHAPE_KEYS = ("id", "x", "y", "width", "height", "type", "text", "fill", "stroke", "textFill")
_CONNECTION_KEYS = ("from", "to", "fromMagnet", "toMagnet", "label")


@dataclass
class Shape:
    """A positioned, sized, labeled node."""
    id: str
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0
    kind: ShapeKind = ShapeKind.RECTANGLE
    text: str = ""
    fill: Optional[str] = None
    stroke: Optional[str] = None
    text_fill: Optional[str] = None
    # Unknown keys are carried through to the plugin untouched
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def bounds(self) -> Bounds:
        return Bounds(self.x, self.y, self.width, self.height)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Shape":
        return cls(
            id=_as_text(data.get("id")),
            x=_as_float(data.get("x")),
            y=_as_float(data.get("y")),
            width=max(0.0, _as_float(data.get("width"))),
            height=max(0.0, _as_float(data.get("height"))),
            kind=ShapeKind.parse(data.get("type")),
            text=_as_text(data.get("text")),
            fill=_as_optional_text(data.get("fill")),
            stroke=_as_optional_text(data.get("stroke")),
            text_fill=_as_optional_text(data.get("textFill")),
            extra={k: v for k, v in data.items() if k not in _SHAPE_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "x": _clean_number(self.x),
            "y": _clean_number(self.y),
            "width": _clean_number(self.width),
            "height": _clean_number(self.height),
            "type": self.kind.value,
            "text": self.text,
        }
        if self.fill is not None:
            out["fill"] = self.fill
        if self.stroke is not None:
            out["stroke"] = self.stroke
        if self.text_fill is not None:
            out["textFill"] = self.text_fill
        out.update(self.extra)
        return out


@dataclass
class Connection:
    """A directed edge between two shapes."""
    source: str
    target: str
    from_magnet: Optional[str] = None
    to_magnet: Optional[str] = None
    label: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Connection":
        return cls(
            source=_as_text(data.get("from")),
            target=_as_text(data.get("to")),
            from_magnet=_as_optional_text(data.get("fromMagnet")),
            to_magnet=_as_optional_text(data.get("toMagnet")),
            label=_as_optional_text(data.get("label")),
            extra={k: v for k, v in data.items() if k not in _CONNECTION_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"from": self.source, "to": self.target}
        if self.from_magnet is not None:
            out["fromMagnet"] = self.from_magnet
        if self.to_magnet is not None:
            out["toMagnet"] = self.to_magnet
        if self.label is not None:
            out["label"] = self.label
        out.update(self.extra)
        return out


@dataclass
class Section:
    """The enclosing container of a diagram."""
    name: str
    x: float = 0
    y: float = 0
    width: float = 800
    height: float = 600

    @property
    def bounds(self) -> Bounds:
        return Bounds(self.x, self.y, self.width, self.height)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Section":
        return cls(
            name=_as_text(data.get("name")),
            x=_as_float(data.get("x")),
            y=_as_float(data.get("y")),
            width=_as_float(data.get("width"), 800),
            height=_as_float(data.get("height"), 600),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "x": _clean_number(self.x),
            "y": _clean_number(self.y),
            "width": _clean_number(self.width),
            "height": _clean_number(self.height),
        }


@dataclass
class Diagram:
    """A whole diagram: sections, shapes and connections."""
    sections: list[Section] = field(default_factory=list)
    shapes: list[Shape] = field(default_factory=list)
    connections: list[Connection] = field(default_factory=list)
    # Number of non-object records dropped while parsing
    dropped: int = field(default=0, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: Any) -> "Diagram":
        """Build a diagram from an untrusted payload, dropping non-object records."""
        if not isinstance(data, dict):
            return cls(dropped=1 if data is not None else 0)
        d = cls()
        for key, factory, target in (
            ("sections", Section.from_dict, d.sections),
            ("shapes", Shape.from_dict, d.shapes),
            ("connections", Connection.from_dict, d.connections),
        ):
            raw = data.get(key) or []
            if not isinstance(raw, list):
                d.dropped += 1
                continue
            for item in raw:
                if isinstance(item, dict):
                    target.append(factory(item))
                else:
                    d.dropped += 1
        return d

    def to_dict(self) -> dict[str, Any]:
        """Serialize with shapes first and sections last.

        The plugin applies keys in order, and a section created before its
        children clips them, so this order is part of the wire contract.
        """
        return {
            "shapes": [s.to_dict() for s in self.shapes],
            "connections": [c.to_dict() for c in self.connections],
            "sections": [s.to_dict() for s in self.sections],
        }

    def shape_index(self) -> dict[str, Shape]:
        """Map ids to shapes; on duplicate ids the first shape wins."""
        index: dict[str, Shape] = {}
        for shape in self.shapes:
            index.setdefault(shape.id, shape)
        return index
