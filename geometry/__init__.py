"""Geometry primitives for slot and detection rectangles."""

from .rectangle import Rectangle, ModelBox, ImageBox
from .overlap import OverlapMetrics, overlap_metrics

__all__ = ['Rectangle', 'ModelBox', 'ImageBox', 'OverlapMetrics', 'overlap_metrics']
