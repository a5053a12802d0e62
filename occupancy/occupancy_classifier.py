"""OccupancyClassifier for deciding which parking slots hold a vehicle."""

import logging
from typing import Dict, List, Sequence

from detection.detection import Detection
from occupancy.parking_slot import ParkingSlot


logger = logging.getLogger(__name__)


class OccupancyClassifier:
    """Checks every slot against the detections with one decision policy.
    
    Detections are expected highest confidence first; for each slot the scan
    stops at the first detection the policy accepts.
    
    Attributes:
        policy: Object with ``name`` and ``occupies(slot_box, detection_box)``
    """
    
    def __init__(self, policy):
        self.policy = policy
    
    def classify(self, slots: Sequence[ParkingSlot],
                 detections: Sequence[Detection]) -> Dict[str, bool]:
        """Decide occupancy for each slot.
        
        Args:
            slots: Parking slots in catalog order
            detections: Image-space detections sorted by confidence
            
        Returns:
            Dictionary mapping slot label to True (occupied) or False, in
            catalog order
        """
        verdicts = {}
        
        for slot in slots:
            verdicts[slot.label] = any(
                self.policy.occupies(slot.box, detection.box) for detection in detections
            )
        
        logger.debug("Policy %s marked %d of %d slots occupied",
                     self.policy.name, sum(verdicts.values()), len(verdicts))
        
        return verdicts
    
    def occupied_labels(self, slots: Sequence[ParkingSlot],
                        detections: Sequence[Detection]) -> List[str]:
        """Labels of occupied slots, in catalog order."""
        return [label for label, occupied in self.classify(slots, detections).items() if occupied]
