"""Utility functions and helpers."""

from .errors import (
    ParkingOccupancyError,
    InvalidImageError,
    EmptyCatalogError,
    ModelUnavailableError,
    MalformedDetectionOutputError
)
from .report import OccupancyResult, ImageReport

__all__ = [
    'ParkingOccupancyError',
    'InvalidImageError',
    'EmptyCatalogError',
    'ModelUnavailableError',
    'MalformedDetectionOutputError',
    'OccupancyResult',
    'ImageReport'
]
