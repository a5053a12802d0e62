"""Filtering of raw detector output into image-space vehicle detections."""

import logging
import math
from dataclasses import dataclass
from typing import Any, List, Mapping

import numpy as np

from detection.detection import Detection
from detection.letterbox import LetterboxParams, invert
from geometry.rectangle import ImageBox, ModelBox
from utils.errors import MalformedDetectionOutputError


logger = logging.getLogger(__name__)

# (x1, y1, x2, y2, confidence, class_id)
RECORD_WIDTH = 6

VEHICLE_CLASS_NAME = 'car'


@dataclass(frozen=True)
class DetectionFilterConfig:
    """Thresholds applied to raw detector records.
    
    Attributes:
        confidence_threshold: Minimum confidence, inclusive
        keep_class_id: The single class id treated as a vehicle
        min_rel_size: Smallest accepted box width/height as a fraction of the image
        max_rel_size: Largest accepted box width/height as a fraction of the image
    """
    confidence_threshold: float = 0.25
    keep_class_id: int = 0
    min_rel_size: float = 0.02
    max_rel_size: float = 0.9
    
    @staticmethod
    def from_config(config_dict: dict) -> 'DetectionFilterConfig':
        defaults = DetectionFilterConfig()
        return DetectionFilterConfig(
            confidence_threshold=float(config_dict.get('confidence_threshold', defaults.confidence_threshold)),
            keep_class_id=int(config_dict.get('keep_class_id', defaults.keep_class_id)),
            min_rel_size=float(config_dict.get('min_rel_size', defaults.min_rel_size)),
            max_rel_size=float(config_dict.get('max_rel_size', defaults.max_rel_size))
        )


def sort_by_confidence(detections: List[Detection]) -> List[Detection]:
    """Sort detections highest confidence first, keeping input order on ties."""
    return sorted(detections, key=lambda d: d.confidence, reverse=True)


def filter_detections(raw: Any, params: LetterboxParams,
                      config: DetectionFilterConfig) -> List[Detection]:
    """Turn raw model output into clean detections in original image space.
    
    Args:
        raw: Detector output whose flattened length is a multiple of 6,
            typically shaped [1, N, 6] in model space
        params: The LetterboxParams used to build the model input
        config: Filter thresholds
        
    Returns:
        Detections sorted by confidence (highest first)
        
    Raises:
        MalformedDetectionOutputError: If the output cannot be read as records of 6
    """
    try:
        values = np.asarray(raw, dtype=np.float64).reshape(-1)
    except (TypeError, ValueError) as e:
        raise MalformedDetectionOutputError(f"Detector output is not numeric: {e}") from e
    
    if values.size % RECORD_WIDTH != 0:
        raise MalformedDetectionOutputError(
            f"Detector output has {values.size} values, not a multiple of {RECORD_WIDTH}"
        )
    
    records = values.reshape(-1, RECORD_WIDTH)
    detections = []
    
    for x1m, y1m, x2m, y2m, confidence, class_id in records:
        if not all(math.isfinite(v) for v in (x1m, y1m, x2m, y2m, confidence, class_id)):
            continue
        
        if confidence < config.confidence_threshold:
            continue
        
        if class_id != config.keep_class_id:
            continue
        
        box = invert(ModelBox(x1m, y1m, x2m, y2m), params)
        
        # Size sanity check relative to the original image
        bw = box.width / params.orig_w
        bh = box.height / params.orig_h
        if not (config.min_rel_size <= bw <= config.max_rel_size):
            continue
        if not (config.min_rel_size <= bh <= config.max_rel_size):
            continue
        
        detections.append(Detection(
            box=box,
            confidence=float(confidence),
            class_id=config.keep_class_id,
            class_name=VEHICLE_CLASS_NAME
        ))
    
    logger.debug("Kept %d of %d raw detector records", len(detections), len(records))
    
    return sort_by_confidence(detections)


def parse_remote_detections(payload: Any) -> List[Detection]:
    """Parse a detection document that is already in image space.
    
    Expected shape::
    
        {"detections": [{"x1": .., "y1": .., "x2": .., "y2": ..,
                         "confidence": .., "label": "car"}, ...]}
    
    Args:
        payload: Decoded JSON document
        
    Returns:
        Detections sorted by confidence (highest first)
        
    Raises:
        MalformedDetectionOutputError: If the document does not match the shape
    """
    if not isinstance(payload, Mapping) or not isinstance(payload.get('detections'), list):
        raise MalformedDetectionOutputError("Response has no 'detections' list")
    
    detections = []
    for i, item in enumerate(payload['detections']):
        if not isinstance(item, Mapping):
            raise MalformedDetectionOutputError(f"Detection {i} is not an object")
        try:
            coords = [float(item[key]) for key in ('x1', 'y1', 'x2', 'y2')]
            confidence = float(item['confidence'])
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedDetectionOutputError(f"Detection {i} is malformed: {e}") from e
        
        if not all(math.isfinite(v) for v in coords + [confidence]):
            raise MalformedDetectionOutputError(f"Detection {i} has non-finite values")
        
        detections.append(Detection(
            box=ImageBox.from_corners(*coords),
            confidence=confidence,
            class_name=str(item.get('label', VEHICLE_CLASS_NAME))
        ))
    
    return sort_by_confidence(detections)
