import pytest

from nnkernels.geometry import (
    PolyInfo,
    is_in_polygon,
    load_regions,
    polygon_area,
    segment_intersection,
)

SQUARE = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]


def test_crossing_diagonals_meet_in_the_middle():
    pt = segment_intersection((0.0, 0.0), (1.0, 1.0), (0.0, 1.0), (1.0, 0.0))
    assert pt == pytest.approx((0.5, 0.5))


def test_intersection_lies_on_both_segments():
    p0, p1, p2, p3 = (0.0, 0.0), (4.0, 2.0), (1.0, 3.0), (3.0, -1.0)
    x, y = segment_intersection(p0, p1, p2, p3)
    # collinear with both segments: cross products vanish
    assert (p1[0] - p0[0]) * (y - p0[1]) - (p1[1] - p0[1]) * (x - p0[0]) == pytest.approx(0.0)
    assert (p3[0] - p2[0]) * (y - p2[1]) - (p3[1] - p2[1]) * (x - p2[0]) == pytest.approx(0.0)


def test_parallel_segments_do_not_meet():
    assert segment_intersection((0.0, 0.0), (1.0, 0.0), (0.0, 1.0), (1.0, 1.0)) is None


def test_disjoint_segments_do_not_meet():
    assert segment_intersection((0.0, 0.0), (1.0, 0.0), (2.0, -1.0), (2.0, 1.0)) is None


def test_point_inside_and_outside_square():
    assert is_in_polygon(SQUARE, (0.5, 0.5)) is True
    assert is_in_polygon(SQUARE, (1.5, 0.5)) is False
    assert is_in_polygon(SQUARE, (0.5, -0.1)) is False


def test_empty_polygon_contains_nothing():
    assert is_in_polygon([], (0.0, 0.0)) is False


def test_unit_square_area():
    assert polygon_area(SQUARE) == pytest.approx(1.0)


def test_area_ignores_orientation_and_translation():
    poly = [(0.0, 0.0), (3.0, 0.5), (2.0, 2.0), (0.5, 1.5)]
    reversed_poly = list(reversed(poly))
    shifted = [(x + 10.0, y - 4.0) for x, y in poly]
    assert polygon_area(reversed_poly) == pytest.approx(polygon_area(poly))
    assert polygon_area(shifted) == pytest.approx(polygon_area(poly))


def test_degenerate_polygon_has_no_area():
    assert polygon_area([(0.0, 0.0), (1.0, 1.0)]) == 0.0


def test_polyinfo_bbox_and_contains():
    region = PolyInfo("P1", [(0.2, 0.2), (0.6, 0.2), (0.6, 0.4), (0.2, 0.4)])
    cx, cy, w, h = region.bbox
    assert cx == pytest.approx(0.4)
    assert cy == pytest.approx(0.3)
    assert w == pytest.approx(0.4)
    assert h == pytest.approx(0.2)
    assert region.contains((0.3, 0.3))
    assert not region.contains((0.7, 0.3))


def _write(tmp_path, body):
    path = tmp_path / "regions.xml"
    path.write_text(body)
    return path


def _polygon(name, points):
    coords = "".join(
        f"<x{i}>{x}</x{i}><y{i}>{y}</y{i}>" for i, (x, y) in enumerate(points)
    )
    return f"<polygon><name>{name}</name><num>{len(points)}</num>{coords}</polygon>"


def test_load_regions_sorts_by_name(tmp_path):
    body = "<polygons>" + "".join(
        [
            _polygon("P1", SQUARE),
            _polygon("HANDOVER", [(0.0, 0.0), (0.5, 0.0), (0.5, 0.5)]),
            _polygon("OTHER", SQUARE),
            _polygon("P2", [(0.1, 0.1), (0.2, 0.1), (0.2, 0.2)]),
        ]
    ) + "</polygons>"
    lots, handovers = load_regions(_write(tmp_path, body))
    assert [r.name for r in lots] == ["P1", "P2"]
    assert [r.name for r in handovers] == ["HANDOVER"]
    assert lots[0].poly == tuple(SQUARE)
    assert handovers[0].contains((0.4, 0.1))


def test_load_regions_missing_file_gives_nothing(tmp_path):
    assert load_regions(tmp_path / "absent.xml") == ([], [])


def test_load_regions_missing_coordinate_raises(tmp_path):
    body = "<polygons><polygon><name>P1</name><num>2</num><x0>0</x0><y0>0</y0></polygon></polygons>"
    with pytest.raises(ValueError):
        load_regions(_write(tmp_path, body))


def test_load_regions_missing_root_raises(tmp_path):
    with pytest.raises(ValueError):
        load_regions(_write(tmp_path, "<shapes></shapes>"))