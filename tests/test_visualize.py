import numpy as np

from pipeline.models import FrameResult, OrientedRegion, RegionRecord
from pipeline.visualize import annotate


def _result(text, recognized=True):
    region = OrientedRegion.from_box(100, 100, 180, 130)
    rec = RegionRecord(region, 0, text=text, recognized=recognized)
    return FrameResult(frame_index=0, image_size=(320, 240), records=[rec], found=int(bool(text)))


def test_annotate_draws_on_a_copy():
    image = np.zeros((240, 320, 3), dtype=np.uint8)
    vis = annotate(image, _result("abc"), fps=25, recognition_enabled=True)
    assert vis.shape == image.shape
    assert not image.any()
    # label box is filled at the anchor vertex
    assert vis[92, 110].any()


def test_gated_out_region_is_not_outlined():
    image = np.zeros((240, 320, 3), dtype=np.uint8)
    vis = annotate(image, _result(""), fps=25, recognition_enabled=True)
    assert not vis[100:131, 100:181].any()
