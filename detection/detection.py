"""Detection data class for vehicle detection results."""

from dataclasses import dataclass

from geometry.rectangle import ImageBox


@dataclass(frozen=True)
class Detection:
    """Represents a single vehicle detection in a still image.
    
    Attributes:
        box: Bounding box in original image coordinates
        confidence: Detection confidence score (0.0 to 1.0)
        class_id: Numeric class identifier reported by the detector
        class_name: Human-readable class name (e.g., 'car')
    """
    box: ImageBox
    confidence: float
    class_id: int = 0
    class_name: str = 'car'
