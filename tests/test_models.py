import pytest

from pipeline.models import OrientedRegion, RegionRecord


def test_region_needs_four_points():
    with pytest.raises(ValueError):
        OrientedRegion(((0, 0), (1, 0), (1, 1)))


def test_rotated_rect_area():
    region = OrientedRegion.from_rotated_rect(((50.0, 50.0), (40.0, 10.0), 30.0))
    assert len(region.points) == 4
    assert region.area == pytest.approx(400.0, rel=1e-3)


def test_clipped_int_points():
    region = OrientedRegion(((-3.7, 2.9), (120.2, -1.0), (99.9, 80.5), (5.5, 49.0)))
    assert region.clipped_int_points(100, 50) == [(0, 2), (99, 0), (99, 49), (5, 49)]


def test_record_line_with_and_without_text():
    region = OrientedRegion.from_box(1, 2, 30, 12)
    assert RegionRecord(region, 0).to_line(100, 100) == "1,2,30,2,30,12,1,12"
    rec = RegionRecord(region, 0, text="", confidence=0.1, recognized=True)
    assert rec.to_line(100, 100) == "1,2,30,2,30,12,1,12,"
    rec = RegionRecord(region, 0, text="abc", recognized=True)
    assert rec.to_line(20, 10) == "1,2,19,2,19,9,1,9,abc"
