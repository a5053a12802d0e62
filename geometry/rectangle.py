"""Axis-aligned rectangle types tagged by coordinate space."""

from dataclasses import dataclass
from typing import List, Tuple, Type, TypeVar


R = TypeVar('R', bound='Rectangle')


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned rectangle given by its corners.
    
    Use the ``ModelBox`` or ``ImageBox`` subclasses rather than this class
    directly so the coordinate space travels with the box.
    
    Attributes:
        x1: Left edge
        y1: Top edge
        x2: Right edge
        y2: Bottom edge
    """
    x1: float
    y1: float
    x2: float
    y2: float
    
    @classmethod
    def from_corners(cls: Type[R], x1: float, y1: float, x2: float, y2: float) -> R:
        """Build a rectangle from two opposite corners in any order.
        
        Raw detector output may report swapped corners; this puts the
        smaller coordinate first on each axis.
        """
        return cls(min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2))
    
    @property
    def width(self) -> float:
        return self.x2 - self.x1
    
    @property
    def height(self) -> float:
        return self.y2 - self.y1
    
    @property
    def area(self) -> float:
        """Area in square pixels; zero or negative means degenerate."""
        return (self.x2 - self.x1) * (self.y2 - self.y1)
    
    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0
    
    def centroid(self) -> Tuple[float, float]:
        return ((self.x1 + self.x2) / 2, (self.y1 + self.y2) / 2)
    
    def corners(self) -> List[Tuple[float, float]]:
        """Corners in (top-left, top-right, bottom-left, bottom-right) order."""
        return [
            (self.x1, self.y1),
            (self.x2, self.y1),
            (self.x1, self.y2),
            (self.x2, self.y2),
        ]
    
    def strictly_contains(self, x: float, y: float) -> bool:
        """Check if a point lies inside the rectangle, edges excluded.
        
        Args:
            x: X coordinate
            y: Y coordinate
            
        Returns:
            True if the point is strictly inside, False otherwise
        """
        return self.x1 < x < self.x2 and self.y1 < y < self.y2
    
    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x1, self.y1, self.x2, self.y2)
    
    def to_dict(self) -> dict:
        return {'x1': self.x1, 'y1': self.y1, 'x2': self.x2, 'y2': self.y2}


@dataclass(frozen=True)
class ModelBox(Rectangle):
    """Rectangle in the detector's square input space."""


@dataclass(frozen=True)
class ImageBox(Rectangle):
    """Rectangle in the original image's pixel space."""


def require_same_space(a: Rectangle, b: Rectangle) -> None:
    """Raise TypeError unless both rectangles are tagged with the same space."""
    if type(a) is Rectangle or type(b) is Rectangle:
        raise TypeError("Rectangles must be tagged as ModelBox or ImageBox")
    if type(a) is not type(b):
        raise TypeError(
            f"Cannot combine {type(a).__name__} with {type(b).__name__}: "
            f"coordinate spaces differ"
        )
