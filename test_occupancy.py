"""Tests for occupancy policies, the classifier and result assembly."""

import pytest

from detection.detection import Detection
from geometry.rectangle import ImageBox
from occupancy.occupancy_classifier import OccupancyClassifier
from occupancy.parking_slot import ParkingSlot
from occupancy.policies import SensitiveOrPolicy, TieredCentroidPolicy, policy_from_config
from occupancy.result_assembler import assemble_result
from utils.errors import EmptyCatalogError


SLOT = ImageBox(0, 0, 100, 100)


def car(x1, y1, x2, y2, confidence=0.9):
    return Detection(box=ImageBox(x1, y1, x2, y2), confidence=confidence)


def slot(label, x1, y1, x2, y2):
    return ParkingSlot(label=label, box=ImageBox(x1, y1, x2, y2))


# --- sensitive-or ---------------------------------------------------------

def test_sensitive_or_small_corner_overlap_without_corner_check():
    """4% of the slot, 11% of the detection, centroid (110,110) outside."""
    policy = SensitiveOrPolicy(corner_check=False)
    
    assert policy.occupies(SLOT, ImageBox(80, 80, 140, 140)) is False


def test_sensitive_or_corner_inside_slot_counts_by_default():
    # Corner (80, 80) lies strictly inside the slot
    assert SensitiveOrPolicy().occupies(SLOT, ImageBox(80, 80, 140, 140)) is True


def test_sensitive_or_slot_coverage_above_threshold():
    # 31% of the slot; centroid (15.5, 50) inside as well, so test coverage alone
    policy = SensitiveOrPolicy(corner_check=False)
    
    assert policy.occupies(SLOT, ImageBox(-100, 0, 31, 100)) is True
    assert policy.occupies(SLOT, ImageBox(-200, -100, 30, 200)) is False


def test_sensitive_or_small_detection_inside_slot():
    # 4% of the slot covered but the whole detection lies inside it
    policy = SensitiveOrPolicy(corner_check=False)
    
    assert policy.occupies(SLOT, ImageBox(40, 40, 60, 60)) is True


def test_sensitive_or_centroid_inside_slot():
    # Large detection: 25% of slot, 6.25% of detection, centroid (50, 100) on edge
    policy = SensitiveOrPolicy(corner_check=False)
    assert policy.occupies(SLOT, ImageBox(-50, 75, 150, 125)) is False
    
    # 30% of slot, 37.5% of detection, centroid (50, 90) strictly inside
    assert policy.occupies(SLOT, ImageBox(-50, 70, 150, 110)) is True


def test_disjoint_detection_never_occupies():
    far = ImageBox(200, 200, 300, 300)
    
    assert SensitiveOrPolicy().occupies(SLOT, far) is False
    assert TieredCentroidPolicy().occupies(SLOT, far) is False


# --- tiered-centroid ------------------------------------------------------

def test_tiered_centroid_high_coverage_is_occupied():
    assert TieredCentroidPolicy().occupies(SLOT, ImageBox(0, 0, 60, 100)) is True


def test_tiered_centroid_low_coverage_is_not_occupied():
    # 30% coverage even though the centroid (15, 50) is inside
    assert TieredCentroidPolicy().occupies(SLOT, ImageBox(0, 0, 30, 100)) is False


def test_tiered_centroid_ambiguous_band_centroid_inside():
    # 40% coverage, centroid (20, 50) inside
    assert TieredCentroidPolicy().occupies(SLOT, ImageBox(0, 0, 40, 100)) is True


def test_tiered_centroid_ambiguous_band_centroid_outside():
    # 40% coverage, centroid (100, 50) on the slot edge, so not strictly inside
    assert TieredCentroidPolicy().occupies(SLOT, ImageBox(60, 0, 140, 100)) is False


def test_tiered_centroid_band_edges_are_inclusive():
    policy = TieredCentroidPolicy()
    
    # Exactly 35% and 50%, centroid outside the slot: both fall in the band
    assert policy.occupies(SLOT, ImageBox(65, 0, 135, 100)) is False
    assert policy.occupies(SLOT, ImageBox(50, 0, 150, 100)) is False
    # Exactly 50%, centroid inside
    assert policy.occupies(SLOT, ImageBox(0, 0, 50, 100)) is True


# --- configuration --------------------------------------------------------

def test_policy_from_config_defaults_to_sensitive_or():
    assert isinstance(policy_from_config({}), SensitiveOrPolicy)


def test_policy_from_config_applies_overrides():
    policy = policy_from_config({
        'policy': 'tiered-centroid',
        'tiered-centroid': {'free_below': 20}
    })
    
    assert isinstance(policy, TieredCentroidPolicy)
    assert policy.free_below == 20
    assert policy.occupied_above == 50


def test_policy_from_config_rejects_unknown_policy():
    with pytest.raises(ValueError):
        policy_from_config({'policy': 'majority-vote'})


# --- classifier -----------------------------------------------------------

def test_classifier_keeps_scanning_until_a_detection_matches():
    classifier = OccupancyClassifier(TieredCentroidPolicy())
    slots = [slot('1', 0, 0, 100, 100)]
    detections = [car(90, 90, 190, 190, 0.9), car(5, 5, 95, 95, 0.6)]
    
    assert classifier.classify(slots, detections) == {'1': True}


def test_classifier_without_detections_marks_everything_available():
    classifier = OccupancyClassifier(SensitiveOrPolicy())
    slots = [slot('1', 0, 0, 100, 100), slot('2', 100, 0, 200, 100)]
    
    assert classifier.classify(slots, []) == {'1': False, '2': False}


def test_classifier_returns_labels_in_catalog_order():
    classifier = OccupancyClassifier(SensitiveOrPolicy())
    slots = [slot('3', 200, 0, 300, 100), slot('1', 0, 0, 100, 100), slot('2', 100, 0, 200, 100)]
    detections = [car(210, 10, 290, 90), car(10, 10, 90, 90)]
    
    assert classifier.occupied_labels(slots, detections) == ['3', '1']


# --- result assembly ------------------------------------------------------

def test_labels_sort_numerically():
    slots = [slot('2', 0, 0, 1, 1), slot('10', 0, 0, 1, 1), slot('1', 0, 0, 1, 1)]
    
    result = assemble_result(slots, ['2', '10', '1'])
    
    assert result.occupied == ('1', '2', '10')
    assert result.available == ()
    assert result.total == 3


def test_partitions_cover_catalog_without_overlap():
    labels = ['9', '10', '11', '1', '2']
    slots = [slot(label, 0, 0, 1, 1) for label in labels]
    
    result = assemble_result(slots, ['10', '2'], {'detectionsFound': 2})
    
    assert result.occupied == ('2', '10')
    assert result.available == ('1', '9', '11')
    assert set(result.occupied).isdisjoint(result.available)
    assert set(result.occupied) | set(result.available) == set(labels)
    assert result.debug['detectionsFound'] == 2
    assert result.debug['occupiedCount'] == 2
    assert result.debug['availableCount'] == 3


def test_non_numeric_labels_follow_numeric_ones():
    slots = [slot(label, 0, 0, 1, 1) for label in ['B2', '3', 'A1', '20']]
    
    result = assemble_result(slots, [])
    
    assert result.available == ('3', '20', 'A1', 'B2')


def test_occupied_labels_outside_catalog_are_ignored():
    result = assemble_result([slot('1', 0, 0, 1, 1)], ['1', '99'])
    
    assert result.occupied == ('1',)
    assert result.total == 1


def test_empty_catalog_raises():
    with pytest.raises(EmptyCatalogError):
        assemble_result([], [], parking_lot_id=7)


def test_result_to_dict_matches_response_contract():
    result = assemble_result([slot('1', 0, 0, 1, 1), slot('2', 0, 0, 1, 1)], ['2'])
    
    data = result.to_dict()
    
    assert data['success'] is True
    assert data['occupied'] == ['2']
    assert data['available'] == ['1']
    assert data['total'] == 2
    assert isinstance(data['debug'], dict)
