# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Image Utility Functions.

This module provides helpers for inspecting downloaded image bytes before they
are sent to the image classifier.
"""

import io
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from web_accessibility_utility.utils.logging_helper import setup_logger

# Set up module-level logger
logger = setup_logger(__name__)


def inspect_image(image_data: bytes) -> Tuple[Optional[str], int]:
    """
    Identify an image's format and frame count.

    Args:
        image_data: Raw image bytes

    Returns:
        Tuple of (Pillow format name or None, number of frames)
    """
    try:
        with Image.open(io.BytesIO(image_data)) as img:
            return img.format, getattr(img, "n_frames", 1)
    except (UnidentifiedImageError, OSError) as e:
        logger.debug(f"Could not identify image data: {e}")
        return None, 0


def is_animated(image_data: bytes) -> bool:
    """Return True for multi-frame images (animated GIF, APNG, WebP)."""
    _, frames = inspect_image(image_data)
    return frames > 1


def resize_image_bytes(
    image_data: bytes, max_size: int = 4_000_000, quality: int = 85
) -> bytes:
    """
    Shrink an image until its encoded size is below a limit, preserving aspect ratio.

    Args:
        image_data: Raw image bytes
        max_size: Maximum allowed size in bytes (default 4MB)
        quality: Starting JPEG quality percentage (1-100)

    Returns:
        Re-encoded image bytes (the input when already small enough)

    Raises:
        ValueError: If the image cannot be processed
    """
    original_size = len(image_data)
    if original_size <= max_size:
        return image_data

    try:
        with Image.open(io.BytesIO(image_data)) as img:
            img_format = img.format or "PNG"
            if img_format not in ("JPEG", "PNG", "WEBP", "GIF"):
                img_format = "PNG"

            width, height = img.size
            ratio = (max_size / original_size) ** 0.5
            new_width = int(width * ratio)
            new_height = int(height * ratio)

            if img_format == "JPEG" and img.mode not in ("RGB", "L"):
                img = img.convert("RGB")

            current_quality = quality

            for attempt in range(10):
                new_width = max(new_width, 100)
                new_height = max(new_height, 100)

                logger.debug(
                    f"Resize attempt {attempt + 1}: {new_width}x{new_height}, quality={current_quality}"
                )

                resized = img.resize((new_width, new_height), Image.Resampling.LANCZOS)

                save_kwargs = {}
                if img_format in ("JPEG", "PNG"):
                    save_kwargs["optimize"] = True
                if img_format == "JPEG":
                    save_kwargs["quality"] = current_quality

                buffer = io.BytesIO()
                resized.save(buffer, format=img_format, **save_kwargs)
                data = buffer.getvalue()

                if len(data) <= max_size:
                    logger.debug(f"Resized image to {len(data)} bytes")
                    return data

                if img_format == "JPEG" and current_quality > 60:
                    current_quality = max(current_quality - 10, 60)
                else:
                    new_width = int(new_width * 0.8)
                    new_height = int(new_height * 0.8)

            return data
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Cannot resize image: {e}") from e
