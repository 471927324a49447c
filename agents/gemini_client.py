"""Async client for the Gemini generative model."""
from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional

import google.generativeai as genai

from logic.errors import ExternalServiceError
from logic.prompting import StylistRequest
from stylist_app.config import DEFAULT_GEMINI_MODEL
from stylist_app.logging_config import get_logger

logger = get_logger(__name__)


class GeminiOutfitClient:
    """Send a stylist request to Gemini and return the raw answer text.

    Exactly one call is made per request. There is no retry; the optional
    timeout bounds how long a single call may take.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_GEMINI_MODEL,
        timeout: Optional[float] = None,
    ) -> None:
        genai.configure(api_key=api_key)
        self.model_name = model
        self.timeout = timeout
        self._model = genai.GenerativeModel(model)

    @staticmethod
    def build_contents(request: StylistRequest) -> List[Any]:
        contents: List[Any] = [request.prompt]
        for image in request.images:
            contents.append(image.caption)
            contents.append(
                {"mime_type": image.mime_type, "data": base64.b64decode(image.data)}
            )
        return contents

    async def generate(self, request: StylistRequest) -> str:
        request_options: Dict[str, Any] = {}
        if self.timeout:
            request_options["timeout"] = self.timeout

        try:
            response = await self._model.generate_content_async(
                self.build_contents(request),
                request_options=request_options or None,
            )
        except Exception as exc:
            raise ExternalServiceError(f"Gemini request failed: {exc}") from exc

        try:
            return response.text
        except ValueError as exc:
            # Raised by the SDK when the candidate was blocked or empty.
            raise ExternalServiceError(f"Gemini returned no text: {exc}") from exc


__all__ = ["GeminiOutfitClient"]
