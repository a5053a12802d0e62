"""Tests for the in-process YOLO detector, with the model replaced by fakes."""

import numpy as np
import pytest

import detection.vehicle_detector as vehicle_detector
from detection.letterbox import compute_letterbox
from detection.vehicle_detector import VehicleDetector
from utils.errors import ModelUnavailableError


class FakeTensor:
    """Mimics the torch tensor calls made on ultralytics box attributes."""

    def __init__(self, values):
        self.values = np.asarray(values, dtype=np.float32)

    def __getitem__(self, index):
        return FakeTensor(self.values[index])

    def cpu(self):
        return self

    def numpy(self):
        return self.values


class FakeBoxes:
    def __init__(self, records):
        records = np.asarray(records, dtype=np.float32).reshape(-1, 6)
        self.xyxy = FakeTensor(records[:, :4])
        self.conf = FakeTensor(records[:, 4])
        self.cls = FakeTensor(records[:, 5])

    def __len__(self):
        return len(self.xyxy.values)


class FakeResult:
    def __init__(self, records):
        self.boxes = FakeBoxes(records)


class FakeModel:
    def __init__(self, records=(), error=None):
        self.records = records
        self.error = error
        self.calls = []
        self.detector = None

    def __call__(self, canvas, imgsz=None, conf=None, verbose=True):
        self.calls.append({
            'shape': canvas.shape,
            'imgsz': imgsz,
            'conf': conf,
            'locked': self.detector._lock.locked()
        })
        if self.error is not None:
            raise self.error
        return [FakeResult(self.records)]


def make_detector(monkeypatch, model):
    monkeypatch.setattr(vehicle_detector, 'YOLO', lambda model_path: model)
    detector = VehicleDetector('best.onnx', confidence_threshold=0.3)
    model.detector = detector
    return detector


def landscape_image():
    return np.zeros((600, 800, 3), dtype=np.uint8)


def test_detect_returns_model_space_records(monkeypatch):
    model = FakeModel(records=[[88, 168, 232, 312, 0.9, 0], [10, 90, 50, 130, 0.4, 2]])
    detector = make_detector(monkeypatch, model)
    params = compute_letterbox(800, 600)

    raw = detector.detect(landscape_image(), params)

    assert detector.ready
    assert raw.shape == (1, 2, 6)
    assert raw.dtype == np.float32
    np.testing.assert_allclose(raw[0, 0], [88, 168, 232, 312, 0.9, 0], rtol=1e-6)
    assert raw[0, 1, 5] == 2

    call = model.calls[0]
    assert call['shape'] == (640, 640, 3)
    assert call['imgsz'] == 640
    assert call['conf'] == 0.3


def test_detect_without_vehicles_has_empty_shape(monkeypatch):
    detector = make_detector(monkeypatch, FakeModel(records=[]))

    raw = detector.detect(landscape_image(), compute_letterbox(800, 600))

    assert raw.shape == (1, 0, 6)


def test_inference_runs_under_the_model_lock(monkeypatch):
    model = FakeModel(records=[])
    detector = make_detector(monkeypatch, model)

    detector.detect(landscape_image(), compute_letterbox(800, 600))

    assert model.calls[0]['locked'] is True
    assert not detector._lock.locked()


def test_inference_failure_is_model_unavailable(monkeypatch):
    model = FakeModel(error=RuntimeError("CUDA out of memory"))
    detector = make_detector(monkeypatch, model)

    with pytest.raises(ModelUnavailableError, match="CUDA out of memory"):
        detector.detect(landscape_image(), compute_letterbox(800, 600))

    assert not detector._lock.locked()


def test_model_that_fails_to_load_is_not_ready(monkeypatch):
    def failing_loader(model_path):
        raise FileNotFoundError(model_path)

    monkeypatch.setattr(vehicle_detector, 'YOLO', failing_loader)
    detector = VehicleDetector('missing.pt')

    assert not detector.ready
    with pytest.raises(ModelUnavailableError, match="Model not loaded yet"):
        detector.detect(landscape_image(), compute_letterbox(800, 600))
