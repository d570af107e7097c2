"""
Image decoding into pixel buffers.

Reads image files with OpenCV and hands the fingerprint pipeline a
ByteBuffer with channels in RGB(A) order. In-memory arrays (from any
decoder) go through the same normalization.
"""

import os
import cv2
import numpy as np
import logging

from .errors import ImageDecodeError, MalformedBuffer
from .pixel_buffer import ByteBuffer

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.bmp', '.webp', '.tif', '.tiff'}


def is_image_file(path: str) -> bool:
    """True for existing files with a supported image extension."""
    return (os.path.isfile(path)
            and os.path.splitext(path)[1].lower() in IMAGE_EXTENSIONS)


def normalize_image(image_np: np.ndarray) -> np.ndarray:
    """
    Ensure samples are uint8.

    16-bit images keep their high byte. Float images in [0, 1] are scaled
    by 255 and truncated, the same rule as UnitBuffer -> ByteBuffer.
    """
    if image_np.dtype == np.uint8:
        return image_np
    if image_np.dtype == np.uint16:
        return (image_np >> 8).astype(np.uint8)
    if image_np.dtype.kind == "f" and image_np.size and image_np.max() <= 1.0:
        return (image_np.astype(np.float32) * np.float32(255.0)).astype(np.uint8)
    return np.clip(image_np, 0, 255).astype(np.uint8)


def pixel_buffer_from_array(image_np: np.ndarray) -> ByteBuffer:
    """
    Wrap an HxW or HxWxC image array as a ByteBuffer.

    Channel order is taken as is; callers decoding with OpenCV should
    convert from BGR first (load_pixel_buffer does this).

    Raises:
        MalformedBuffer: If the array is not 2- or 3-dimensional.
    """
    image_np = normalize_image(np.asarray(image_np))

    if image_np.ndim == 2:
        height, width = image_np.shape
        channel_count = 1
    elif image_np.ndim == 3:
        height, width, channel_count = image_np.shape
    else:
        raise MalformedBuffer(f"Expected a 2D or 3D image array, got shape {image_np.shape}")

    return ByteBuffer(height, width, channel_count, image_np.reshape(-1))


def load_pixel_buffer(path: str) -> ByteBuffer:
    """
    Decode an image file into a ByteBuffer.

    Alpha channels are kept. Color images are reordered from OpenCV's BGR
    to RGB so the brightness weights apply to the right channels.

    Raises:
        ImageDecodeError: If the file is missing or cannot be decoded.
    """
    image = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if image is None:
        raise ImageDecodeError(f"Could not read image: {path}")

    if image.ndim == 3 and image.shape[2] == 3:
        image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    elif image.ndim == 3 and image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)

    buffer = pixel_buffer_from_array(image)
    logger.debug(f"Decoded {path}: {buffer}")
    return buffer
