"""Client for a remote vehicle detection service."""

import logging
from typing import Any, Dict

import cv2
import numpy as np
import requests

from detection.letterbox import LetterboxParams
from utils.errors import InvalidImageError, MalformedDetectionOutputError, ModelUnavailableError


logger = logging.getLogger(__name__)


class RemoteVehicleDetector:
    """Posts images to an HTTP inference endpoint.
    
    The service answers with ``{"detections": [...]}`` already in original
    image coordinates. Failed calls are not retried.
    
    Attributes:
        url: Full URL of the detection endpoint
        timeout: Request timeout in seconds
    """
    
    def __init__(self, url: str, timeout: float = 30.0, session: requests.Session = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
    
    @property
    def ready(self) -> bool:
        return bool(self.url)
    
    def detect(self, image: np.ndarray, params: LetterboxParams) -> Dict[str, Any]:
        """Send an image to the service and return its decoded JSON document.
        
        Args:
            image: Original image as numpy array (BGR format)
            params: Unused; the service works in original image space
            
        Returns:
            Decoded response document
        """
        if not self.url:
            raise ModelUnavailableError("No detection service URL configured")
        
        ok, encoded = cv2.imencode('.jpg', image)
        if not ok:
            raise InvalidImageError("Failed to encode image for the detection service")
        
        files = {'file': ('image.jpg', encoded.tobytes(), 'image/jpeg')}
        
        try:
            response = self.session.post(self.url, files=files, timeout=self.timeout)
        except requests.Timeout as e:
            raise ModelUnavailableError(f"Detection service timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise ModelUnavailableError(f"Detection service request failed: {e}") from e
        
        if not 200 <= response.status_code < 300:
            raise ModelUnavailableError(
                f"Detection service returned HTTP {response.status_code}"
            )
        
        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedDetectionOutputError("Detection service returned invalid JSON") from e
        
        logger.debug("Detection service answered HTTP %d", response.status_code)
        return payload
