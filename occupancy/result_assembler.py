"""Assembly of classifier output into the occupancy result."""

from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from occupancy.parking_slot import ParkingSlot
from utils.errors import EmptyCatalogError
from utils.report import OccupancyResult


def label_sort_key(label: str) -> Tuple[int, Any]:
    """Sort key putting numeric labels first, by value.
    
    "10" sorts after "9". Labels that are not integers follow all numeric
    labels, in lexicographic order.
    """
    try:
        return (0, int(label))
    except (TypeError, ValueError):
        return (1, str(label))


def assemble_result(slots: Sequence[ParkingSlot],
                    occupied_labels: Iterable[str],
                    diagnostics: Optional[Dict[str, Any]] = None,
                    parking_lot_id: Any = None) -> OccupancyResult:
    """Partition the slot catalog into occupied and available labels.
    
    Args:
        slots: The full slot catalog for the lot
        occupied_labels: Labels the classifier found occupied
        diagnostics: Extra debug entries (letterbox parameters, detection counts)
        parking_lot_id: Lot id, used in the error message for an empty catalog
        
    Returns:
        OccupancyResult with both partitions sorted numerically
        
    Raises:
        EmptyCatalogError: If the catalog has no slots
    """
    if not slots:
        raise EmptyCatalogError(parking_lot_id)
    
    occupied_set = set(occupied_labels)
    all_labels = [slot.label for slot in slots]
    
    occupied = sorted((label for label in all_labels if label in occupied_set), key=label_sort_key)
    available = sorted((label for label in all_labels if label not in occupied_set), key=label_sort_key)
    
    debug = dict(diagnostics or {})
    debug['occupiedCount'] = len(occupied)
    debug['availableCount'] = len(available)
    
    return OccupancyResult(
        occupied=tuple(occupied),
        available=tuple(available),
        total=len(all_labels),
        debug=debug
    )
