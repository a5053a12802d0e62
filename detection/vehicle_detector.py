"""Local vehicle detector using a YOLO model loaded in-process."""

import logging
import threading

import numpy as np
from ultralytics import YOLO

from detection.letterbox import LetterboxParams, letterbox_image
from utils.errors import ModelUnavailableError


logger = logging.getLogger(__name__)


class VehicleDetector:
    """Runs a YOLO model on the letterboxed model canvas.
    
    Returns raw [1, N, 6] records in model space, so detector output goes
    through the same inversion and filtering as any exported model output.
    The model is shared by all requests; inference calls are serialized.
    """
    
    def __init__(self, model_path: str, confidence_threshold: float = 0.25):
        """Initialize the vehicle detector.
        
        A model that fails to load leaves the detector in a not-ready
        state; ``detect`` then raises ModelUnavailableError.
        
        Args:
            model_path: Path to the YOLO weights (.pt or exported .onnx)
            confidence_threshold: Confidence passed to the model (default: 0.25)
        """
        self.model_path = model_path
        self.confidence_threshold = confidence_threshold
        self._lock = threading.Lock()
        self.model = None
        
        logger.info("Loading model from: %s", model_path)
        try:
            self.model = YOLO(model_path)
        except Exception as e:
            logger.error("Error loading model %s: %s", model_path, e)
        else:
            logger.info("Model loaded successfully")
    
    @property
    def ready(self) -> bool:
        return self.model is not None
    
    def detect(self, image: np.ndarray, params: LetterboxParams) -> np.ndarray:
        """Detect vehicles in a single image.
        
        Args:
            image: Original image as numpy array (BGR format)
            params: LetterboxParams computed for this image
            
        Returns:
            Float array of shape [1, N, 6]: x1, y1, x2, y2, confidence, class_id
            in model space
        """
        if self.model is None:
            raise ModelUnavailableError("Model not loaded yet")
        
        canvas = letterbox_image(image, params)
        
        try:
            with self._lock:
                results = self.model(
                    canvas,
                    imgsz=params.target_size,
                    conf=self.confidence_threshold,
                    verbose=False
                )
        except Exception as e:
            raise ModelUnavailableError(f"Model inference failed: {e}") from e
        
        records = []
        
        # Process results from the first (and only) image
        for result in results:
            boxes = result.boxes
            
            for i in range(len(boxes)):
                x1, y1, x2, y2 = boxes.xyxy[i].cpu().numpy()
                confidence = float(boxes.conf[i].cpu().numpy())
                class_id = int(boxes.cls[i].cpu().numpy())
                records.append([x1, y1, x2, y2, confidence, class_id])
        
        return np.asarray(records, dtype=np.float32).reshape(1, -1, 6)
