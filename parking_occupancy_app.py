"""Main application for parking occupancy detection."""

import json
import logging
import os
import time
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import cv2
import numpy as np

from detection.detection import Detection
from detection.detection_filter import DetectionFilterConfig, filter_detections, parse_remote_detections
from detection.letterbox import LetterboxParams, compute_letterbox
from occupancy.occupancy_classifier import OccupancyClassifier
from occupancy.parking_slot import ParkingSlot
from occupancy.policies import policy_from_config
from occupancy.result_assembler import assemble_result
from storage.detection_log import DetectionLog
from storage.models import create_session_factory
from storage.slot_catalog import SlotCatalog
from utils.errors import InvalidImageError, MalformedDetectionOutputError, ParkingOccupancyError
from utils.report import ImageReport, OccupancyResult
from visualization.visualizer import Visualizer


logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ['.jpg', '.jpeg', '.png', '.bmp']


def build_detector(detection_config: Dict):
    """Create the detector named by the 'backend' setting.

    Args:
        detection_config: The 'detection' configuration section

    Returns:
        A VehicleDetector ('local') or RemoteVehicleDetector ('remote')
    """
    backend = detection_config.get('backend', 'local')

    if backend == 'remote':
        from detection.remote_detector import RemoteVehicleDetector
        return RemoteVehicleDetector(
            url=detection_config.get('remote_url'),
            timeout=float(detection_config.get('remote_timeout', 30.0))
        )

    if backend == 'local':
        # Imported here so the remote backend does not load the model stack
        from detection.vehicle_detector import VehicleDetector
        return VehicleDetector(
            model_path=detection_config.get('model_path', 'best.onnx'),
            confidence_threshold=detection_config.get('confidence_threshold', 0.25)
        )

    raise ValueError(f"Unknown detector backend '{backend}' (expected 'local' or 'remote')")


def decode_image(data: bytes) -> np.ndarray:
    """Decode an uploaded image into a BGR array.

    Raises:
        InvalidImageError: If the bytes are not a readable image
    """
    if not data:
        raise InvalidImageError("No image data")
    image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    if image is None:
        raise InvalidImageError("Could not decode image (unsupported format or corrupted)")
    return image


class ParkingOccupancyApp:
    """Runs one image through letterbox, detection, filtering, classification and assembly.

    The detector, slot catalog and detection log are injected so the pipeline
    can run against fakes. Nothing here holds per-request state.

    Attributes:
        detector: Object with ``detect(image, params)`` returning a raw array
            (model space) or a JSON document (image space)
        catalog: SlotCatalog supplying slots per parking lot
        detection_log: Optional DetectionLog for best-effort history
        classifier: OccupancyClassifier using the configured policy
        filter_config: DetectionFilterConfig for raw detector output
        target_size: Side of the square model input
        config: Configuration dictionary
    """

    def __init__(self, config: Dict, detector, catalog: SlotCatalog,
                 detection_log: Optional[DetectionLog] = None):
        """Initialize the parking occupancy application.

        Args:
            config: Configuration dictionary with all settings
            detector: Detector handle
            catalog: Slot catalog
            detection_log: Optional detection history log
        """
        self.config = config
        self.detector = detector
        self.catalog = catalog
        self.detection_log = detection_log

        detection_config = config.get('detection', {})
        self.filter_config = DetectionFilterConfig.from_config(detection_config)
        self.target_size = int(detection_config.get('target_size', 640))

        self.classifier = OccupancyClassifier(policy_from_config(config.get('occupancy', {})))

        self.visualizer = Visualizer()

    @classmethod
    def from_config(cls, config: Dict) -> 'ParkingOccupancyApp':
        """Build the application and its collaborators from configuration."""
        session_factory = create_session_factory(config.get('database', {}).get('url', 'sqlite:///parking.db'))

        detection_log = None
        if config.get('output', {}).get('log_detections', True):
            detection_log = DetectionLog(session_factory)

        return cls(
            config=config,
            detector=build_detector(config.get('detection', {})),
            catalog=SlotCatalog(session_factory),
            detection_log=detection_log
        )

    def run_detection(self, image: np.ndarray,
                      params: LetterboxParams) -> Tuple[List[Detection], int]:
        """Invoke the detector and bring its output into image space.

        Args:
            image: Original image (BGR format)
            params: LetterboxParams for this image

        Returns:
            Tuple of (detections sorted by confidence, number of raw records)
        """
        output = self.detector.detect(image, params)

        # Remote service: JSON already in original image space
        if isinstance(output, dict):
            detections = parse_remote_detections(output)
            return detections, len(detections)

        try:
            raw = np.asarray(output, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise MalformedDetectionOutputError(f"Unsupported detector output: {e}") from e

        raw_count = raw.size // 6
        return filter_detections(raw, params, self.filter_config), raw_count

    def detect_image(self, image: np.ndarray, parking_lot_id: int = 1,
                     source_image: Optional[str] = None) -> Tuple[OccupancyResult, List[Detection]]:
        """Decide slot occupancy for one image.

        Runs letterbox → detection → filtering → classification → assembly,
        then queues a detection log entry.

        Args:
            image: Original image as numpy array (BGR format)
            parking_lot_id: Lot whose slot catalog applies
            source_image: Optional reference stored with the log entry

        Returns:
            Tuple of (OccupancyResult, detections used for classification)
        """
        result, detections, _ = self._evaluate(image, parking_lot_id, source_image)
        return result, detections

    def _evaluate(self, image: np.ndarray, parking_lot_id: int,
                  source_image: Optional[str]) -> Tuple[OccupancyResult, List[Detection], List[ParkingSlot]]:
        # Step 1: Slot catalog (original image coordinates)
        slots = self.catalog.get_parking_slots(parking_lot_id)

        # Step 2: Letterbox parameters shared by detection and inversion
        if image is None or image.ndim < 2:
            raise InvalidImageError("Image has no pixel data")
        orig_h, orig_w = image.shape[:2]
        params = compute_letterbox(orig_w, orig_h, self.target_size)

        # Step 3: Detection and filtering
        detections, raw_count = self.run_detection(image, params)

        # Step 4: Occupancy
        occupied = self.classifier.occupied_labels(slots, detections)

        # Step 5: Result
        diagnostics = {
            'modelInput': [1, 3, params.target_size, params.target_size],
            'scale': params.scale,
            'padX': params.pad_x,
            'padY': params.pad_y,
            'origW': params.orig_w,
            'origH': params.orig_h,
            'rawDetections': raw_count,
            'detectionsFound': len(detections),
            'policy': self.classifier.policy.name
        }
        result = assemble_result(slots, occupied, diagnostics, parking_lot_id=parking_lot_id)

        logger.info("Parking lot %s: %d/%d slots occupied (%d detections)",
                    parking_lot_id, len(result.occupied), result.total, len(detections))

        if self.detection_log is not None:
            try:
                self.detection_log.notify(parking_lot_id, result, source_image)
            except Exception:
                logger.exception("Detection log rejected entry for parking lot %s", parking_lot_id)

        return result, detections, slots

    def process_image(self, image_path: str, parking_lot_id: int = 1,
                      output_path: Optional[str] = None, annotate: bool = False) -> ImageReport:
        """Process an image file and report the outcome.

        Errors are reported in the returned ImageReport rather than raised.

        Args:
            image_path: Path to input image file
            parking_lot_id: Lot whose slot catalog applies
            output_path: Optional path for the annotated image (auto-generated if None)
            annotate: Whether to write an annotated image

        Returns:
            ImageReport with the occupancy result or the error
        """
        start_time = time.time()

        def failed(error_msg: str) -> ImageReport:
            logger.error("%s", error_msg)
            return ImageReport(
                image_path=image_path,
                parking_lot_id=parking_lot_id,
                processing_time_seconds=time.time() - start_time,
                success=False,
                error=error_msg
            )

        if not os.path.isfile(image_path):
            return failed(f"File not found: {image_path}")

        image = cv2.imread(image_path, cv2.IMREAD_COLOR)
        if image is None:
            return failed(f"Could not open image file (unsupported format or corrupted): {image_path}")

        try:
            result, detections, slots = self._evaluate(image, parking_lot_id, image_path)
            if annotate:
                output_path = self._save_annotated_image(
                    image, slots, result, detections, image_path, output_path
                )
        except ParkingOccupancyError as e:
            return failed(str(e))
        except Exception as e:
            logger.exception("Unexpected error processing %s", image_path)
            return failed(f"Unexpected error: {e}")

        report = ImageReport(
            image_path=image_path,
            parking_lot_id=parking_lot_id,
            result=result,
            processing_time_seconds=time.time() - start_time,
            output_path=output_path if annotate else None
        )

        if self.config.get('output', {}).get('output_report', True):
            report_path = self._save_report_json(report)
            logger.info("Report saved: %s", report_path)

        return report

    def process_directory(self, directory_path: str,
                          parking_lot_id: int = 1,
                          annotate: bool = False,
                          extensions: List[str] = None) -> List[ImageReport]:
        """Process all image files in a directory.

        Args:
            directory_path: Path to directory containing images
            parking_lot_id: Lot whose slot catalog applies to every image
            annotate: Whether to write annotated images
            extensions: Image file extensions to process
                       (default: ['.jpg', '.jpeg', '.png', '.bmp'])

        Returns:
            List of ImageReport objects, one per image
        """
        if extensions is None:
            extensions = IMAGE_EXTENSIONS

        directory = Path(directory_path)
        if not directory.is_dir():
            logger.error("Not a directory: %s", directory_path)
            return []

        image_paths = sorted(
            str(p) for p in directory.iterdir()
            if p.is_file() and p.suffix.lower() in extensions
        )

        if not image_paths:
            logger.warning("No image files found in %s (extensions: %s)", directory_path, extensions)
            return []

        logger.info("Found %d image files in %s", len(image_paths), directory_path)

        return [
            self.process_image(path, parking_lot_id, annotate=annotate)
            for path in image_paths
        ]

    def _output_directory(self) -> str:
        return self.config.get('output', {}).get('output_directory', 'output')

    def _save_annotated_image(self, image: np.ndarray, slots: List[ParkingSlot],
                              result: OccupancyResult, detections: List[Detection],
                              image_path: str, output_path: Optional[str]) -> str:
        if output_path is None:
            output_path = os.path.join(self._output_directory(), f"{Path(image_path).stem}_annotated.jpg")

        output_dir = os.path.dirname(output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)

        annotated = image.copy()
        self.visualizer.draw_slots(annotated, slots, result.occupied)
        self.visualizer.draw_detections(annotated, detections)
        self.visualizer.draw_summary(annotated, result)

        if not cv2.imwrite(output_path, annotated):
            logger.warning("Could not write annotated image to %s", output_path)

        return output_path

    def _save_report_json(self, report: ImageReport) -> str:
        """Save ImageReport to JSON file.

        Args:
            report: ImageReport object to save

        Returns:
            Path to saved report file
        """
        reports_dir = os.path.join(self._output_directory(), 'reports')
        os.makedirs(reports_dir, exist_ok=True)

        report_path = os.path.join(reports_dir, f"{Path(report.image_path).stem}_report.json")

        try:
            with open(report_path, 'w') as f:
                json.dump(report.to_dict(), f, indent=2)
        except OSError as e:
            logger.warning("Could not save report to %s: %s", report_path, e)

        return report_path
