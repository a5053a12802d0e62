"""Rectangle overlap calculation utility."""

from dataclasses import dataclass

from geometry.rectangle import Rectangle, require_same_space


@dataclass(frozen=True)
class OverlapMetrics:
    """Overlap between two rectangles A and B.
    
    Attributes:
        area_intersect: Intersection area in square pixels
        pct_of_a: Intersection as a percentage (0-100) of A's area
        pct_of_b: Intersection as a percentage (0-100) of B's area
        intersects: Whether the rectangles share a positive area
    """
    area_intersect: float = 0.0
    pct_of_a: float = 0.0
    pct_of_b: float = 0.0
    intersects: bool = False


NO_OVERLAP = OverlapMetrics()


def overlap_metrics(rect_a: Rectangle, rect_b: Rectangle) -> OverlapMetrics:
    """Calculate the axis-aligned overlap between two rectangles.
    
    Args:
        rect_a: First rectangle
        rect_b: Second rectangle, tagged with the same coordinate space
        
    Returns:
        OverlapMetrics; all zeros for disjoint or degenerate rectangles
        
    Raises:
        TypeError: If the rectangles are in different coordinate spaces
    """
    require_same_space(rect_a, rect_b)
    
    # Degenerate rectangles never overlap (and would divide by zero below)
    if rect_a.is_degenerate() or rect_b.is_degenerate():
        return NO_OVERLAP
    
    # Calculate coordinates of intersection rectangle
    x_left = max(rect_a.x1, rect_b.x1)
    x_right = min(rect_a.x2, rect_b.x2)
    y_top = max(rect_a.y1, rect_b.y1)
    y_bottom = min(rect_a.y2, rect_b.y2)
    
    # Check if there is no overlap
    if x_right < x_left or y_bottom < y_top:
        return NO_OVERLAP
    
    area_intersect = (x_right - x_left) * (y_bottom - y_top)
    
    return OverlapMetrics(
        area_intersect=area_intersect,
        pct_of_a=area_intersect / rect_a.area * 100,
        pct_of_b=area_intersect / rect_b.area * 100,
        intersects=area_intersect > 0
    )
