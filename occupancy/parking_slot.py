"""ParkingSlot class for labeled slot rectangles."""

from dataclasses import dataclass

from geometry.rectangle import ImageBox


@dataclass(frozen=True)
class ParkingSlot:
    """A labeled parking slot in original image coordinates.
    
    Attributes:
        label: Slot label, usually a numeral such as "12"
        box: Slot rectangle in original image space
    """
    label: str
    box: ImageBox
    
    def to_dict(self) -> dict:
        data = {'label': self.label}
        data.update(self.box.to_dict())
        return data
    
    @staticmethod
    def from_config(config_dict: dict) -> 'ParkingSlot':
        """Create ParkingSlot from a catalog row or configuration dictionary.
        
        Args:
            config_dict: Dictionary with 'label', 'x1', 'y1', 'x2', 'y2' keys
            
        Returns:
            New ParkingSlot instance
        """
        return ParkingSlot(
            label=str(config_dict['label']),
            box=ImageBox.from_corners(
                float(config_dict['x1']),
                float(config_dict['y1']),
                float(config_dict['x2']),
                float(config_dict['y2'])
            )
        )
