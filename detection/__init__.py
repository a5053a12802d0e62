"""Detection module: letterboxing, detector backends and output filtering."""

from .detection import Detection
from .letterbox import LetterboxParams, compute_letterbox, invert, to_model_space, letterbox_image
from .detection_filter import DetectionFilterConfig, filter_detections, parse_remote_detections

__all__ = [
    'Detection',
    'LetterboxParams',
    'compute_letterbox',
    'invert',
    'to_model_space',
    'letterbox_image',
    'DetectionFilterConfig',
    'filter_detections',
    'parse_remote_detections'
]
