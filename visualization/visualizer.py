"""Visualizer class for rendering occupancy results on parking images."""

from typing import Iterable, List, Sequence, Tuple

import cv2
import numpy as np

from detection.detection import Detection
from occupancy.parking_slot import ParkingSlot
from utils.report import OccupancyResult


class Visualizer:
    """Draws parking slots, vehicle detections and a summary on an image.

    Used to check slot calibration and classifier decisions by eye.

    Attributes:
        show_confidence: Whether to print confidence next to detections
    """

    # Color definitions (BGR format for OpenCV)
    COLOR_OCCUPIED = (0, 0, 255)  # Red for occupied slots
    COLOR_AVAILABLE = (0, 255, 0)  # Green for available slots
    COLOR_DETECTION = (255, 165, 0)  # Orange-blue for detections
    COLOR_TEXT_BG = (0, 0, 0)  # Black background for text
    COLOR_TEXT_FG = (255, 255, 255)  # White foreground for text

    def __init__(self, show_confidence: bool = True):
        self.show_confidence = show_confidence

    def draw_slots(self, frame: np.ndarray, slots: Sequence[ParkingSlot],
                   occupied_labels: Iterable[str]) -> np.ndarray:
        """Draw slot rectangles colored by occupancy.

        Args:
            frame: Input image (will be modified in place)
            slots: Parking slots in image coordinates
            occupied_labels: Labels of occupied slots

        Returns:
            Modified image with slots drawn
        """
        occupied = set(occupied_labels)

        for slot in slots:
            color = self.COLOR_OCCUPIED if slot.label in occupied else self.COLOR_AVAILABLE
            top_left, bottom_right = self._corners(slot.box.as_tuple())

            # Semi-transparent fill
            overlay = frame.copy()
            cv2.rectangle(overlay, top_left, bottom_right, color, -1)
            cv2.addWeighted(overlay, 0.2, frame, 0.8, 0, frame)

            cv2.rectangle(frame, top_left, bottom_right, color, 2)
            self._draw_label(frame, slot.label, (top_left[0] + 4, top_left[1] + 20), color)

        return frame

    def draw_detections(self, frame: np.ndarray, detections: List[Detection]) -> np.ndarray:
        """Draw bounding boxes for detections on the image.

        Args:
            frame: Input image (will be modified in place)
            detections: List of Detection objects in image coordinates

        Returns:
            Modified image with detection bounding boxes drawn
        """
        for detection in detections:
            top_left, bottom_right = self._corners(detection.box.as_tuple())
            cv2.rectangle(frame, top_left, bottom_right, self.COLOR_DETECTION, 2)

            if self.show_confidence:
                label = f"{detection.class_name} {detection.confidence:.2f}"
                self._draw_label(frame, label, (top_left[0], top_left[1] - 10))

        return frame

    def draw_summary(self, frame: np.ndarray, result: OccupancyResult) -> np.ndarray:
        """Draw the occupied/total count in the top-left corner."""
        label = f"Occupied: {len(result.occupied)}/{result.total}  Available: {len(result.available)}"
        self._draw_label(frame, label, (10, 30))
        return frame

    @staticmethod
    def _corners(box: Tuple[float, float, float, float]) -> Tuple[Tuple[int, int], Tuple[int, int]]:
        x1, y1, x2, y2 = (int(round(v)) for v in box)
        return (x1, y1), (x2, y2)

    def _draw_label(self, frame: np.ndarray, text: str, position: Tuple[int, int],
                    color: Tuple[int, int, int] = None) -> None:
        """Draw text label with background for readability.

        Args:
            frame: Input image (will be modified in place)
            text: Text to display
            position: Position for the label as (x, y)
            color: Optional color for the text (defaults to white)
        """
        x, y = position

        if color is None:
            color = self.COLOR_TEXT_FG

        font = cv2.FONT_HERSHEY_SIMPLEX
        font_scale = 0.6
        thickness = 2
        (text_width, text_height), baseline = cv2.getTextSize(text, font, font_scale, thickness)

        # Ensure label stays within frame bounds
        y = max(text_height + 5, y)
        x = max(0, min(x, frame.shape[1] - text_width - 10))

        cv2.rectangle(frame,
                      (x - 2, y - text_height - 2),
                      (x + text_width + 2, y + baseline + 2),
                      self.COLOR_TEXT_BG, -1)

        cv2.putText(frame, text, (x, y), font, font_scale, color, thickness)
