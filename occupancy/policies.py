"""Decision policies for whether a detection occupies a parking slot.

Two policies exist because deployments disagree on how permissive matching
should be. ``sensitive-or`` accepts a detection on any of several weak
signals; ``tiered-centroid`` requires a large overlap and only consults the
centroid in an ambiguous middle band. Pick one in configuration.
"""

from dataclasses import dataclass
from typing import Dict, Type

from geometry.overlap import overlap_metrics
from geometry.rectangle import ImageBox


@dataclass(frozen=True)
class SensitiveOrPolicy:
    """Occupied if any overlap, centroid or corner signal fires.
    
    Attributes:
        slot_pct_threshold: Percent of the slot covered, exclusive
        detection_pct_threshold: Percent of the detection inside the slot, exclusive
        corner_check: Also accept a detection corner strictly inside the slot
    """
    name = 'sensitive-or'
    
    slot_pct_threshold: float = 30.0
    detection_pct_threshold: float = 50.0
    corner_check: bool = True
    
    def occupies(self, slot_box: ImageBox, detection_box: ImageBox) -> bool:
        metrics = overlap_metrics(slot_box, detection_box)
        if not metrics.intersects:
            return False
        
        if metrics.pct_of_a > self.slot_pct_threshold:
            return True
        if metrics.pct_of_b > self.detection_pct_threshold:
            return True
        
        if slot_box.strictly_contains(*detection_box.centroid()):
            return True
        
        if self.corner_check:
            return any(slot_box.strictly_contains(x, y) for x, y in detection_box.corners())
        
        return False


@dataclass(frozen=True)
class TieredCentroidPolicy:
    """Overlap tiers with a centroid tie-break in the middle band.
    
    Attributes:
        occupied_above: Percent of the slot covered above which it is occupied
        free_below: Percent of the slot covered below which this detection is ignored
    """
    name = 'tiered-centroid'
    
    occupied_above: float = 50.0
    free_below: float = 35.0
    
    def occupies(self, slot_box: ImageBox, detection_box: ImageBox) -> bool:
        metrics = overlap_metrics(slot_box, detection_box)
        if not metrics.intersects:
            return False
        
        pct = metrics.pct_of_a
        if pct > self.occupied_above:
            return True
        if pct < self.free_below:
            return False
        
        # Ambiguous band: decide by where the vehicle's center sits
        return slot_box.strictly_contains(*detection_box.centroid())


POLICIES: Dict[str, Type] = {
    SensitiveOrPolicy.name: SensitiveOrPolicy,
    TieredCentroidPolicy.name: TieredCentroidPolicy,
}

DEFAULT_POLICY = SensitiveOrPolicy.name


def policy_from_config(config_dict: dict):
    """Build the configured policy.
    
    Args:
        config_dict: The 'occupancy' configuration section. 'policy' names the
            policy; an optional mapping under that same name overrides its
            thresholds, e.g. ``{'policy': 'tiered-centroid',
            'tiered-centroid': {'free_below': 30}}``
            
    Returns:
        Policy instance
        
    Raises:
        ValueError: If the policy name is unknown
    """
    name = config_dict.get('policy', DEFAULT_POLICY)
    if name not in POLICIES:
        raise ValueError(
            f"Unknown occupancy policy '{name}'. Choose one of: {', '.join(sorted(POLICIES))}"
        )
    overrides = config_dict.get(name) or {}
    return POLICIES[name](**overrides)
