# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Bedrock client for image classification.

This module provides a client for interacting with AWS Bedrock to obtain a
short ranked list of descriptive labels for an image.
"""

import re
from typing import List, Optional

import boto3

from web_accessibility_utility.utils.image_utils import resize_image_bytes
from web_accessibility_utility.utils.logging_helper import (
    ClassificationFailure,
    setup_logger,
)

# Set up module-level logger
logger = setup_logger(__name__)

CLASSIFY_PROMPT = """
You label images for web accessibility.

List the {max_labels} most prominent objects, subjects or concepts visible in the
image, most prominent first. Respond with a single line of comma-separated labels
of one to three words each and nothing else.
"""

SUPPORTED_FORMATS = ("png", "jpeg", "gif", "webp")


class BedrockClient:
    """Client for classifying images with AWS Bedrock.

    Attributes:
        model_id: The Bedrock model ID to use
        profile: AWS credentials profile name
        client: Boto3 Bedrock runtime client
        MAX_IMAGE_SIZE: Maximum allowed image size in bytes
    """

    # Maximum image size in bytes (4MB)
    MAX_IMAGE_SIZE = 4_000_000

    def __init__(
        self,
        model_id: str = "us.amazon.nova-lite-v1:0",
        profile: Optional[str] = None,
        client=None,
    ):
        """
        Initialize the Bedrock client.

        Args:
            model_id: The ID of the Bedrock model to use
            profile: AWS profile name to use for authentication
            client: Optional pre-built bedrock-runtime client
        """
        self.model_id = model_id
        self.profile = profile

        if client is not None:
            self.client = client
            return

        if profile:
            try:
                session = boto3.Session(profile_name=profile)
                logger.debug(f"Using AWS profile: {profile}")
            except Exception as profile_error:
                logger.warning(
                    f"Couldn't use AWS profile '{profile}', falling back to default credentials: {profile_error}"
                )
                session = boto3.Session()
        else:
            session = boto3.Session()

        self.client = session.client("bedrock-runtime")
        logger.debug(f"Initialized Bedrock client with model: {model_id}, profile: {profile}")

    def classify_image(
        self, image_bytes: bytes, media_type: str = "image/png", max_labels: int = 7
    ) -> List[str]:
        """
        Ask the model for descriptive labels of an image.

        Args:
            image_bytes: Raw image content
            media_type: MIME type of the image
            max_labels: Maximum number of labels to return

        Returns:
            Labels ordered from most to least prominent

        Raises:
            ClassificationFailure: If the request fails or yields no labels
        """
        if len(image_bytes) > self.MAX_IMAGE_SIZE:
            logger.warning(
                f"Image size {len(image_bytes)} bytes exceeds limit of {self.MAX_IMAGE_SIZE}, resizing"
            )
            try:
                image_bytes = resize_image_bytes(image_bytes, max_size=self.MAX_IMAGE_SIZE)
                media_type = "image/jpeg"
            except Exception as resize_error:
                logger.warning(
                    f"Failed to resize large image: {resize_error}, attempting with original"
                )

        image_format = media_type.split("/")[-1].lower()
        if image_format == "jpg":
            image_format = "jpeg"
        if image_format not in SUPPORTED_FORMATS:
            image_format = "png"

        try:
            response = self.client.converse(
                modelId=self.model_id,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"text": CLASSIFY_PROMPT.format(max_labels=max_labels)},
                            {
                                "image": {
                                    "format": image_format,
                                    "source": {"bytes": image_bytes},
                                }
                            },
                        ],
                    }
                ],
                inferenceConfig={"maxTokens": 200, "temperature": 0.0},
            )
        except Exception as e:
            logger.warning(f"Error classifying image with Bedrock: {e}")
            raise ClassificationFailure(f"Failed to classify image: {e}") from e

        content = response.get("output", {}).get("message", {}).get("content", [])
        if not content or "text" not in content[0]:
            logger.warning("No content in Bedrock response")
            raise ClassificationFailure("No content in Bedrock response")

        labels = parse_labels(content[0]["text"])[:max_labels]
        if not labels:
            raise ClassificationFailure("Bedrock response contained no labels")
        return labels


def parse_labels(text: str) -> List[str]:
    """Split a model reply into clean, de-duplicated labels."""
    labels = []
    seen = set()
    for raw in re.split(r"[,\n]", text):
        label = raw.strip().strip("-*•.\"'").strip()
        if not label or label.lower() in seen:
            continue
        seen.add(label.lower())
        labels.append(label)
    return labels


def get_media_type(url_or_path: str) -> str:
    """
    Get the media type based on file extension.

    Args:
        url_or_path: Path or URL of the image

    Returns:
        Media type string
    """
    path = url_or_path.split("?", 1)[0].split("#", 1)[0].lower()

    if path.endswith((".jpg", ".jpeg")):
        return "image/jpeg"
    elif path.endswith(".png"):
        return "image/png"
    elif path.endswith(".gif"):
        return "image/gif"
    elif path.endswith(".webp"):
        return "image/webp"
    else:
        # Default to png
        return "image/png"
