"""Tests for the letterbox transform between image and model space."""

import numpy as np
import pytest

from detection.letterbox import compute_letterbox, invert, letterbox_image, to_model_space
from geometry.rectangle import ImageBox, ModelBox
from utils.errors import InvalidImageError


def test_landscape_image_scale_and_padding():
    params = compute_letterbox(800, 600, 640)
    
    assert params.scale == pytest.approx(0.8)
    assert (params.new_w, params.new_h) == (640, 480)
    assert (params.pad_x, params.pad_y) == (0, 80)


def test_portrait_image_pads_horizontally():
    params = compute_letterbox(480, 960, 640)
    
    assert params.scale == pytest.approx(2 / 3)
    assert (params.new_w, params.new_h) == (320, 640)
    assert (params.pad_x, params.pad_y) == (160, 0)


def test_resized_image_fits_inside_canvas():
    for orig_w, orig_h in [(1, 1), (1920, 1080), (333, 777), (641, 639), (5000, 3)]:
        params = compute_letterbox(orig_w, orig_h, 640)
        
        assert params.scale > 0
        assert params.new_w <= 640 and params.new_h <= 640
        assert params.pad_x >= 0 and params.pad_y >= 0
        assert params.pad_x + params.new_w <= 640
        assert params.pad_y + params.new_h <= 640


@pytest.mark.parametrize('orig_w,orig_h', [(0, 600), (800, 0), (-5, 10)])
def test_non_positive_dimensions_raise(orig_w, orig_h):
    with pytest.raises(InvalidImageError):
        compute_letterbox(orig_w, orig_h, 640)


def test_round_trip_recovers_box_within_a_pixel():
    for orig_w, orig_h in [(800, 600), (1920, 1080), (333, 777), (1280, 1281)]:
        params = compute_letterbox(orig_w, orig_h, 640)
        box = ImageBox(orig_w * 0.1, orig_h * 0.2, orig_w * 0.7, orig_h * 0.95)
        
        recovered = invert(to_model_space(box, params), params)
        
        for original, result in zip(box.as_tuple(), recovered.as_tuple()):
            assert abs(original - result) <= 1


def test_invert_known_values():
    params = compute_letterbox(800, 600, 640)
    
    box = invert(ModelBox(80, 160, 240, 320), params)
    
    assert box.as_tuple() == pytest.approx((100, 100, 300, 300))


def test_invert_clamps_to_image_bounds():
    params = compute_letterbox(800, 600, 640)
    
    # Box reaching into the top padding and past the right edge
    box = invert(ModelBox(-20, 10, 700, 600), params)
    
    assert box.x1 == 0
    assert box.y1 == 0
    assert box.x2 == 800
    assert box.y2 == 600


def test_invert_requires_model_space_box():
    params = compute_letterbox(800, 600, 640)
    
    with pytest.raises(TypeError):
        invert(ImageBox(0, 0, 10, 10), params)
    with pytest.raises(TypeError):
        to_model_space(ModelBox(0, 0, 10, 10), params)


def test_letterbox_image_centers_resized_image():
    image = np.full((600, 800, 3), 255, dtype=np.uint8)
    params = compute_letterbox(800, 600, 640)
    
    canvas = letterbox_image(image, params)
    
    assert canvas.shape == (640, 640, 3)
    assert canvas[:80].max() == 0
    assert canvas[560:].max() == 0
    assert canvas[80:560].min() == 255


def test_letterbox_image_rejects_mismatched_params():
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    
    with pytest.raises(InvalidImageError):
        letterbox_image(image, compute_letterbox(800, 600, 640))
