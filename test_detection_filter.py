"""Tests for filtering raw detector output and parsing service responses."""

import numpy as np
import pytest

from detection.detection_filter import DetectionFilterConfig, filter_detections, parse_remote_detections
from detection.letterbox import compute_letterbox
from utils.errors import MalformedDetectionOutputError


PARAMS = compute_letterbox(800, 600, 640)
CONFIG = DetectionFilterConfig()

# Maps to (100, 100, 300, 300) in the 800x600 image
CAR_BOX = [80, 160, 240, 320]


def records(*rows):
    return np.asarray(rows, dtype=np.float64).reshape(1, -1, 6)


def test_confidence_threshold_is_inclusive():
    raw = records(CAR_BOX + [0.24, 0], CAR_BOX + [0.25, 0])
    
    detections = filter_detections(raw, PARAMS, CONFIG)
    
    assert len(detections) == 1
    assert detections[0].confidence == pytest.approx(0.25)


def test_other_classes_are_dropped():
    raw = records(CAR_BOX + [0.9, 2], CAR_BOX + [0.8, 0])
    
    detections = filter_detections(raw, PARAMS, CONFIG)
    
    assert [d.confidence for d in detections] == [pytest.approx(0.8)]
    assert detections[0].class_name == 'car'


def test_boxes_are_returned_in_image_space():
    detections = filter_detections(records(CAR_BOX + [0.9, 0]), PARAMS, CONFIG)
    
    assert detections[0].box.as_tuple() == pytest.approx((100, 100, 300, 300))


def test_implausible_sizes_are_dropped():
    tiny = [80, 160, 84, 164, 0.9, 0]        # 5x5 px in the image
    full = [0, 80, 640, 560, 0.9, 0]         # whole frame
    raw = records(tiny, full, CAR_BOX + [0.5, 0])
    
    detections = filter_detections(raw, PARAMS, CONFIG)
    
    assert len(detections) == 1
    assert detections[0].confidence == pytest.approx(0.5)


def test_sorted_by_confidence_with_stable_ties():
    first = [80, 160, 240, 320, 0.6, 0]
    second = [320, 160, 480, 320, 0.6, 0]
    best = [400, 300, 560, 460, 0.95, 0]
    
    detections = filter_detections(records(first, second, best), PARAMS, CONFIG)
    
    assert [d.confidence for d in detections] == pytest.approx([0.95, 0.6, 0.6])
    assert detections[1].box.x1 == pytest.approx(100)
    assert detections[2].box.x1 == pytest.approx(400)


def test_non_finite_records_are_skipped():
    raw = records([np.nan, 160, 240, 320, 0.9, 0], CAR_BOX + [0.7, 0])
    
    assert len(filter_detections(raw, PARAMS, CONFIG)) == 1


def test_empty_output_gives_no_detections():
    assert filter_detections(np.zeros((1, 0, 6)), PARAMS, CONFIG) == []


def test_output_length_must_be_multiple_of_six():
    with pytest.raises(MalformedDetectionOutputError):
        filter_detections(np.zeros(7), PARAMS, CONFIG)


def test_filter_config_from_config():
    config = DetectionFilterConfig.from_config({'confidence_threshold': 0.5, 'keep_class_id': 2})
    
    assert config.confidence_threshold == 0.5
    assert config.keep_class_id == 2
    assert config.min_rel_size == 0.02


def test_parse_remote_detections():
    payload = {'detections': [
        {'x1': 10, 'y1': 10, 'x2': 50, 'y2': 60, 'confidence': 0.4, 'label': 'car'},
        {'x1': 300, 'y1': 90, 'x2': 200, 'y2': 40, 'confidence': 0.9, 'label': 'car'},
    ]}
    
    detections = parse_remote_detections(payload)
    
    assert [d.confidence for d in detections] == [0.9, 0.4]
    assert detections[0].box.as_tuple() == (200, 40, 300, 90)


@pytest.mark.parametrize('payload', [
    None,
    {},
    {'detections': 'none'},
    {'detections': [{'x1': 1, 'y1': 1, 'x2': 2}]},
    {'detections': [{'x1': 1, 'y1': 1, 'x2': 2, 'y2': 2, 'confidence': 'high'}]},
    {'detections': [42]},
])
def test_parse_remote_detections_rejects_malformed_payload(payload):
    with pytest.raises(MalformedDetectionOutputError):
        parse_remote_detections(payload)
