"""
Vision model access for image descriptions and transcriptions.

Uses Gemini through google-genai when GEMINI_API_KEY is set, otherwise the
OpenAI-compatible LLM client with a base64 PNG payload.
"""

import base64
import logging
import os
from io import BytesIO
from typing import Optional

import pikepdf
from google import genai
from google.genai import types
from PIL import Image


def image_from_xobject(xobj: pikepdf.Stream, max_pixels: int = 768) -> Image.Image:
    """
    Decode an image XObject into an RGB (or grayscale) PIL image no larger
    than max_pixels on its longest side.

    Raises:
        ValueError: if the XObject carries no image data
    """
    if not xobj.read_raw_bytes():
        raise ValueError("image XObject has no data")
    image = pikepdf.PdfImage(xobj).as_pil_image()
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    image.thumbnail((max_pixels, max_pixels))
    return image


def image_to_base64(image: Image.Image) -> str:
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")


class VisionDescriber:
    """Sends an image plus an instruction to a vision model."""

    def __init__(self, llm_client=None, model: Optional[str] = None, gemini_model: Optional[str] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the VisionDescriber.

        Args:
            llm_client: LLM client used when Gemini is not configured
            model: Vision model for the LLM client
            gemini_model: Gemini model name
            logger: Optional logger instance
        """
        self.llm_client = llm_client
        self.model = model
        self.gemini_model = gemini_model
        self.logger = logger or logging.getLogger(__name__)

        api_key = os.getenv("GEMINI_API_KEY")
        if api_key:
            self.vision_client = genai.Client(api_key=api_key)
        else:
            self.vision_client = None
            self.logger.debug("GEMINI_API_KEY not found - using the LLM client for vision requests")

    def describe(self, image: Image.Image, prompt: str) -> str:
        """
        Run the prompt against the image.

        Returns:
            Stripped response text
        """
        if self.vision_client:
            response = self.vision_client.models.generate_content(
                model=self.gemini_model,
                contents=[image, prompt],
                config=types.GenerateContentConfig(temperature=0),
            )
            return (response.text or "").strip()

        if self.llm_client is None:
            from .llm_client import get_llm_client
            self.llm_client = get_llm_client()
        return self.llm_client.describe_image(self.model, prompt, image_to_base64(image))
