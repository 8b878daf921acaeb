import numpy as np
import pytest

from pipeline.models import DetectionThresholds
from pipeline.text_detector import DnnTextDetector, EasyOCRTextDetector, pixel_link_regions

THR = DetectionThresholds(cls_pixel=0.8, link_pixel=0.8)


def _maps(h=20, w=40, blocks=((5, 10, 5, 31),), link=10.0):
    segm = np.zeros((2, h, w), dtype=np.float32)
    segm[1] = -10.0
    for y1, y2, x1, x2 in blocks:
        segm[1, y1:y2, x1:x2] = 10.0
    links = np.zeros((16, h, w), dtype=np.float32)
    links[1::2] = link
    return segm, links


def test_block_becomes_one_scaled_region():
    segm, links = _maps()
    [region] = pixel_link_regions(segm, links, (160, 80), THR)
    # the box covers whole cells: 26 x 5 cells scaled by 4
    assert region.area == pytest.approx(104 * 20, rel=1e-3)
    xs = [x for x, _ in region.points]
    ys = [y for _, y in region.points]
    assert min(xs) == pytest.approx(20, abs=0.5) and max(xs) == pytest.approx(124, abs=0.5)
    assert min(ys) == pytest.approx(20, abs=0.5) and max(ys) == pytest.approx(40, abs=0.5)


def test_size_filters_use_covered_cells():
    # 3 x 3 cells at scale 4 cover 12 x 12 px: tall enough, but under 300 px^2
    segm, links = _maps(blocks=((5, 8, 5, 8),))
    assert pixel_link_regions(segm, links, (160, 80), THR) == []
    assert len(pixel_link_regions(segm, links, (160, 80), THR, min_area=100.0)) == 1


def test_weak_links_drop_everything():
    segm, links = _maps(link=-10.0)
    assert pixel_link_regions(segm, links, (160, 80), THR) == []


def test_small_components_are_dropped():
    segm, links = _maps(blocks=((5, 10, 5, 31), (15, 17, 2, 4)))
    assert len(pixel_link_regions(segm, links, (160, 80), THR)) == 1


def test_separate_blocks_are_separate_regions():
    segm, links = _maps(blocks=((2, 7, 2, 20), (12, 18, 22, 38)))
    assert len(pixel_link_regions(segm, links, (160, 80), THR)) == 2


def test_dnn_postprocess_picks_outputs_by_channels():
    segm, links = _maps()
    det = object.__new__(DnnTextDetector)
    regions = det.postprocess((links[None], segm[None]), (160, 80), THR)
    assert len(regions) == 1


def test_dnn_postprocess_rejects_unknown_outputs():
    det = object.__new__(DnnTextDetector)
    with pytest.raises(RuntimeError):
        det.postprocess((np.zeros((1, 3, 4, 4), dtype=np.float32),), (16, 16), THR)


def test_easyocr_boxes_and_quads():
    det = object.__new__(EasyOCRTextDetector)
    horizontal = [[10, 50, 5, 20]]
    free = [[[0, 30], [40, 25], [42, 40], [2, 45]]]
    regions = det.postprocess((horizontal, free), (100, 100), THR)
    assert regions[0].points == ((10.0, 5.0), (50.0, 5.0), (50.0, 20.0), (10.0, 20.0))
    assert regions[1].points[2] == (42.0, 40.0)
