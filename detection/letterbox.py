"""Letterbox transform between original image space and model input space.

The detector consumes a fixed square canvas. The original image is scaled to
fit inside it with its aspect ratio preserved and centered with padding. The
same ``LetterboxParams`` instance must be used to build the canvas and to map
detector boxes back, otherwise the round trip drifts.
"""

import math
from dataclasses import dataclass

import cv2
import numpy as np

from geometry.rectangle import ImageBox, ModelBox
from utils.errors import InvalidImageError


DEFAULT_TARGET_SIZE = 640
PAD_COLOR = (0, 0, 0)


@dataclass(frozen=True)
class LetterboxParams:
    """Scale and padding that place an image on the model canvas.
    
    Attributes:
        scale: Resize factor applied to the original image (> 0)
        pad_x: Left padding in model pixels
        pad_y: Top padding in model pixels
        target_size: Side of the square model input
        orig_w: Original image width
        orig_h: Original image height
        new_w: Width of the resized image on the canvas
        new_h: Height of the resized image on the canvas
    """
    scale: float
    pad_x: int
    pad_y: int
    target_size: int
    orig_w: int
    orig_h: int
    new_w: int
    new_h: int


def _round_half_up(value: float) -> int:
    # Built-in round() is banker's rounding; pixel sizes round half up
    return int(math.floor(value + 0.5))


def compute_letterbox(orig_w: int, orig_h: int,
                      target_size: int = DEFAULT_TARGET_SIZE) -> LetterboxParams:
    """Compute the scale and padding to fit an image into the model canvas.
    
    Args:
        orig_w: Original image width in pixels
        orig_h: Original image height in pixels
        target_size: Side of the square model input (default: 640)
        
    Returns:
        LetterboxParams for this image
        
    Raises:
        InvalidImageError: If any dimension is not positive
    """
    if orig_w <= 0 or orig_h <= 0:
        raise InvalidImageError(f"Invalid image dimensions: {orig_w}x{orig_h}")
    if target_size <= 0:
        raise InvalidImageError(f"Invalid model input size: {target_size}")
    
    scale = min(target_size / orig_w, target_size / orig_h)
    new_w = max(1, _round_half_up(orig_w * scale))
    new_h = max(1, _round_half_up(orig_h * scale))
    pad_x = (target_size - new_w) // 2
    pad_y = (target_size - new_h) // 2
    
    return LetterboxParams(
        scale=scale,
        pad_x=pad_x,
        pad_y=pad_y,
        target_size=target_size,
        orig_w=int(orig_w),
        orig_h=int(orig_h),
        new_w=new_w,
        new_h=new_h
    )


def to_model_space(box: ImageBox, params: LetterboxParams) -> ModelBox:
    """Place an image-space box on the model canvas."""
    if not isinstance(box, ImageBox):
        raise TypeError(f"Expected ImageBox, got {type(box).__name__}")
    return ModelBox(
        box.x1 * params.scale + params.pad_x,
        box.y1 * params.scale + params.pad_y,
        box.x2 * params.scale + params.pad_x,
        box.y2 * params.scale + params.pad_y,
    )


def invert(box: ModelBox, params: LetterboxParams) -> ImageBox:
    """Map a model-space box back to original image pixels.
    
    Coordinates are clamped to the image bounds and corner order is
    normalized, so the result always satisfies x1 <= x2 and y1 <= y2.
    
    Args:
        box: Box in model input coordinates
        params: The LetterboxParams used to build the model input
        
    Returns:
        Box in original image coordinates
    """
    if not isinstance(box, ModelBox):
        raise TypeError(f"Expected ModelBox, got {type(box).__name__}")
    
    def to_x(value: float) -> float:
        return max(0.0, min(float(params.orig_w), (value - params.pad_x) / params.scale))
    
    def to_y(value: float) -> float:
        return max(0.0, min(float(params.orig_h), (value - params.pad_y) / params.scale))
    
    return ImageBox.from_corners(to_x(box.x1), to_y(box.y1), to_x(box.x2), to_y(box.y2))


def letterbox_image(image: np.ndarray, params: LetterboxParams) -> np.ndarray:
    """Resize and pad an image onto the square model canvas.
    
    Args:
        image: Original image as numpy array (BGR format)
        params: LetterboxParams computed from this image's dimensions
        
    Returns:
        Canvas of shape (target_size, target_size, channels)
    """
    height, width = image.shape[:2]
    if (width, height) != (params.orig_w, params.orig_h):
        raise InvalidImageError(
            f"Image is {width}x{height} but letterbox was computed for "
            f"{params.orig_w}x{params.orig_h}"
        )
    
    resized = cv2.resize(image, (params.new_w, params.new_h), interpolation=cv2.INTER_LINEAR)
    
    pad_right = params.target_size - params.new_w - params.pad_x
    pad_bottom = params.target_size - params.new_h - params.pad_y
    return cv2.copyMakeBorder(
        resized,
        params.pad_y, pad_bottom, params.pad_x, pad_right,
        cv2.BORDER_CONSTANT, value=PAD_COLOR
    )
