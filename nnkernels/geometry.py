"""Planar polygon helpers and named regions loaded from an XML description."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Tuple

Point = Tuple[float, float]

_FLT_MAX = 3.4028234663852886e38


def segment_intersection(p0: Point, p1: Point, p2: Point, p3: Point) -> Optional[Point]:
    """Return where segment p0-p1 meets segment p2-p3, or None if they do not meet."""
    s1x, s1y = p1[0] - p0[0], p1[1] - p0[1]
    s2x, s2y = p3[0] - p2[0], p3[1] - p2[1]
    denom = -s2x * s1y + s1x * s2y
    if denom == 0:
        return None
    s = (-s1y * (p0[0] - p2[0]) + s1x * (p0[1] - p2[1])) / denom
    t = (s2x * (p0[1] - p2[1]) - s2y * (p0[0] - p2[0])) / denom
    if 0 <= s <= 1 and 0 <= t <= 1:
        return (p0[0] + t * s1x, p0[1] + t * s1y)
    return None


def is_in_polygon(poly: Sequence[Point], pt: Point) -> bool:
    """Ray-casting point-in-polygon test."""
    inside = False
    if not poly:
        return inside
    px, py = pt
    prev = poly[-1]
    for cur in poly:
        if (cur[1] > py) != (prev[1] > py):
            cross_x = cur[0] + (prev[0] - cur[0]) * (py - cur[1]) / (prev[1] - cur[1])
            if px < cross_x:
                inside = not inside
        prev = cur
    return inside


def polygon_area(poly: Sequence[Point]) -> float:
    """Absolute area by the shoelace formula; fewer than three vertices give 0."""
    if len(poly) < 3:
        return 0.0
    area = 0.0
    prev = poly[-1]
    for cur in poly:
        area += (prev[0] + cur[0]) * (prev[1] - cur[1])
        prev = cur
    return abs(area / 2.0)


@dataclass
class PolyInfo:
    """A named polygon with its bounding box as (centre x, centre y, width, height)."""

    name: str
    poly: Tuple[Point, ...]
    bbox: Tuple[float, float, float, float] = field(init=False)

    def __post_init__(self) -> None:
        self.poly = tuple((float(x), float(y)) for x, y in self.poly)
        x_min, x_max = _FLT_MAX, 0.0
        y_min, y_max = _FLT_MAX, 0.0
        for x, y in self.poly:
            x_min = min(x_min, x)
            x_max = max(x_max, x)
            y_min = min(y_min, y)
            y_max = max(y_max, y)
        self.bbox = (
            (x_min + x_max) / 2.0,
            (y_min + y_max) / 2.0,
            x_max - x_min,
            y_max - y_min,
        )

    def contains(self, pt: Point) -> bool:
        """True when the point lies inside the polygon."""
        return is_in_polygon(self.poly, pt)


def _child(element: ET.Element, tag: str) -> ET.Element:
    found = element.find(tag)
    if found is None:
        raise ValueError(f"polygon entry has no <{tag}> element")
    return found


def _number(element: ET.Element, convert) -> float:
    try:
        return convert((element.text or "").strip())
    except ValueError:
        return convert(0)


def load_regions(path) -> Tuple[list, list]:
    """Read regions from an XML file and return (parking_lots, handovers).

    Regions whose name starts with "P" are parking lots, those named "HANDOVER"
    are handover regions; any other region is skipped. A file that is missing
    or cannot be parsed yields two empty lists.
    """
    parking_lots: list = []
    handovers: list = []
    try:
        tree = ET.parse(Path(path))
    except (OSError, ET.ParseError):
        return parking_lots, handovers

    root = tree.getroot()
    if root.tag != "polygons":
        root = root.find("polygons")
    if root is None:
        raise ValueError("document has no <polygons> element")

    children = list(root)
    start = next((i for i, el in enumerate(children) if el.tag == "polygon"), None)
    if start is None:
        return parking_lots, handovers

    for polygon in children[start:]:
        name = _child(polygon, "name").text
        if name is None:
            raise ValueError("polygon entry has an empty <name> element")
        count = int(_number(_child(polygon, "num"), int))
        points = [
            (
                _number(_child(polygon, f"x{i}"), float),
                _number(_child(polygon, f"y{i}"), float),
            )
            for i in range(max(count, 0))
        ]
        if name.startswith("P"):
            parking_lots.append(PolyInfo(name, tuple(points)))
        elif name == "HANDOVER":
            handovers.append(PolyInfo(name, tuple(points)))
    return parking_lots, handovers