"""Product recognition from a photo."""

import base64
import binascii
import logging
from datetime import date

from pydantic_ai import BinaryContent

from src.agents import agent_instance
from src.agents.prompts import build_vision_prompt
from src.core.logging import span
from src.domain.recipe import PantryItemGuess


logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "image/jpeg"


def decode_image(image: bytes | str) -> tuple[bytes, str]:
    """Turn raw bytes, a base64 string or a data URL into (bytes, media type).

    Raises:
        ValueError: If the string is not valid base64
    """
    if isinstance(image, bytes):
        return image, DEFAULT_MEDIA_TYPE

    media_type = DEFAULT_MEDIA_TYPE
    payload = image.strip()
    if "," in payload:
        header, payload = payload.split(",", 1)
        # "data:image/png;base64"
        if header.startswith("data:") and ";" in header:
            media_type = header[len("data:") : header.index(";")] or DEFAULT_MEDIA_TYPE

    try:
        return base64.b64decode(payload, validate=True), media_type
    except binascii.Error as e:
        raise ValueError("Image is not valid base64") from e


async def identify_item_from_image(image: bytes | str, today: date | None = None) -> PantryItemGuess | None:
    """Recognize a food product and estimate its pantry fields.

    The expiry estimate assumes the product was bought today.

    Args:
        image: Raw image bytes, or a base64 / data-URL string
        today: Purchase date used for the expiry estimate (defaults to today)

    Returns:
        The recognized item, or None if the image is not a food product or
        the recognition failed
    """
    try:
        data, media_type = decode_image(image)
    except ValueError as e:
        logger.warning("vision_image_invalid", extra={"error": str(e)})
        return None

    if not data:
        logger.warning("vision_image_invalid", extra={"error": "empty image"})
        return None

    prompt = build_vision_prompt(today or date.today())

    with span("vision_agent.identify_item"):
        try:
            result = await agent_instance.get_vision_agent().run(
                [prompt, BinaryContent(data=data, media_type=media_type)]
            )
        except Exception as e:
            logger.error("vision_recognition_failed", extra={"error": str(e), "error_type": type(e).__name__})
            return None

        output = result.output
        if not output.is_food or output.item is None:
            logger.info("vision_not_food")
            return None

        logger.info("vision_item_identified", extra={"item_name": output.item.name})
        return output.item
