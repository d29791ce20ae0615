"""
Image Loader

Decodes vehicle images from disk or from base64 payloads into BGR rasters.
"""

import base64
import binascii
import logging
from pathlib import Path
from typing import Union

import cv2
import numpy as np

from ..exceptions import ImageLoadError


class ImageLoader:
    """Reads images with OpenCV and reports decode failures as ImageLoadError."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def load_file(self, path: Union[str, Path]) -> np.ndarray:
        """
        Load an image file.

        Args:
            path: Path to a file OpenCV can decode

        Returns:
            BGR image

        Raises:
            ImageLoadError: If the file is missing or cannot be decoded
        """
        image_path = Path(path)
        if not image_path.is_file():
            raise ImageLoadError(f"Image file not found: {image_path}")

        image = cv2.imread(str(image_path), cv2.IMREAD_COLOR)
        if image is None:
            raise ImageLoadError(f"Failed to decode image: {image_path}")

        self.logger.debug(f"Loaded {image_path} ({image.shape[1]}x{image.shape[0]})")
        return image

    def load_base64(self, data: str) -> np.ndarray:
        """
        Decode a base64 encoded image, with or without a data URI prefix.

        Args:
            data: Base64 string such as ``data:image/png;base64,iVBOR...``

        Returns:
            BGR image

        Raises:
            ImageLoadError: If the payload is not valid base64 or not an image
        """
        if not data:
            raise ImageLoadError("Empty base64 image payload")

        if data.startswith('data:') and ',' in data:
            data = data.split(',', 1)[1]

        try:
            raw = base64.b64decode(data.strip(), validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImageLoadError(f"Invalid base64 image payload: {e}") from e

        buffer = np.frombuffer(raw, dtype=np.uint8)
        image = cv2.imdecode(buffer, cv2.IMREAD_COLOR) if buffer.size else None
        if image is None:
            raise ImageLoadError("Failed to decode base64 image payload")

        self.logger.debug(f"Decoded base64 image ({image.shape[1]}x{image.shape[0]})")
        return image
