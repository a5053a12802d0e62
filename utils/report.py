"""Result data classes for parking occupancy detection."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class OccupancyResult:
    """Occupancy of every slot in one parking lot for one image.
    
    The two label tuples are disjoint and together cover the whole slot
    catalog.
    
    Attributes:
        occupied: Labels of occupied slots in numeric order
        available: Labels of available slots in numeric order
        total: Number of slots in the catalog
        debug: Diagnostics (letterbox parameters, detection counts, policy)
    """
    occupied: Tuple[str, ...]
    available: Tuple[str, ...]
    total: int
    debug: Dict[str, Any] = field(default_factory=dict)
    
    def to_dict(self) -> Dict:
        """Convert to the JSON response contract.
        
        Returns:
            Dictionary with 'success', 'occupied', 'available', 'total', 'debug'
        """
        return {
            'success': True,
            'occupied': list(self.occupied),
            'available': list(self.available),
            'total': self.total,
            'debug': dict(self.debug)
        }


@dataclass
class ImageReport:
    """Outcome of processing one image from the command line.
    
    Attributes:
        image_path: Path to the processed image
        parking_lot_id: Lot whose slot catalog was used
        result: OccupancyResult when processing succeeded
        processing_time_seconds: Total time spent on the image
        output_path: Optional path to the annotated image
        success: Whether processing completed successfully
        error: Optional error message if processing failed
    """
    image_path: str
    parking_lot_id: int
    result: Optional[OccupancyResult] = None
    processing_time_seconds: Optional[float] = None
    output_path: Optional[str] = None
    success: bool = True
    error: Optional[str] = None
    
    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization.
        
        Returns:
            Dictionary representation of the image report
        """
        if self.result is not None:
            report_dict = self.result.to_dict()
        else:
            report_dict = {'success': False}
        
        report_dict['success'] = self.success
        report_dict['image_path'] = self.image_path
        report_dict['parking_lot_id'] = self.parking_lot_id
        
        if self.processing_time_seconds is not None:
            report_dict['processing_time_seconds'] = self.processing_time_seconds
        
        if self.output_path:
            report_dict['output_path'] = self.output_path
        
        if self.error:
            report_dict['error'] = self.error
        
        return report_dict
