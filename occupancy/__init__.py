"""Occupancy module: slot catalog entries, decision policies and result assembly."""

from occupancy.parking_slot import ParkingSlot
from occupancy.policies import SensitiveOrPolicy, TieredCentroidPolicy, policy_from_config
from occupancy.occupancy_classifier import OccupancyClassifier
from occupancy.result_assembler import assemble_result

__all__ = [
    'ParkingSlot',
    'SensitiveOrPolicy',
    'TieredCentroidPolicy',
    'policy_from_config',
    'OccupancyClassifier',
    'assemble_result'
]
