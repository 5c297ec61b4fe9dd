"""OCR and translation through an OpenAI-compatible vision model."""

import base64
import json
import re
from pathlib import Path

import requests

from . import log
from .errors import TranslationError

logger = log.get_logger()

NO_TEXT_MESSAGE = "No text was extracted from the image."

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".bmp": "image/bmp",
    ".gif": "image/gif",
    ".webp": "image/webp",
}

PROMPT_TEMPLATE = (
    "Extract all text from this image and translate it to {language}. "
    "If the text is already in {language}, just return it. "
    "If there are multiple languages, translate all to {language}. "
    "If the text is not in a language you recognize, try to transliterate it. "
    "If the text is in multiple orientations, handle each one. "
    "Return only the translated text, no additional commentary or formatting."
)

_IMAGE_DATA_RE = re.compile(r'data:[^;"]+;base64,[^"]+')
_ACCESS_TOKEN_RE = re.compile(r'("access_token"\s*:\s*")[^"]+')


def mime_type_for(path: Path) -> str:
    """Guess the image MIME type from the file extension (PNG by default)."""
    return MIME_TYPES.get(path.suffix.lower(), "image/png")


def redact(text: str, api_key: str | None = None) -> str:
    """Strip secrets and image payloads from a request/response body for logging."""
    if api_key:
        text = text.replace(api_key, "###API-KEY-REMOVED###")
    text = _IMAGE_DATA_RE.sub("data:###IMAGE-DATA-REMOVED###", text)
    text = _ACCESS_TOKEN_RE.sub(r"\1###SESSION-TOKEN-REMOVED###", text)
    return text


class VisionTranslator:
    """Sends an image to a chat-completions endpoint and returns the translation."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        api_url: str = "https://api.openai.com/v1/chat/completions",
        max_tokens: int = 1000,
        temperature: float = 0.7,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.api_url = api_url
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_config(cls, config) -> "VisionTranslator":
        return cls(
            api_key=config.api_key,
            model=config.model,
            api_url=config.api_url,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            timeout=config.request_timeout,
        )

    def build_payload(self, image_path: Path, target_language: str) -> dict:
        """Build the chat-completions request body for an image file."""
        image_b64 = base64.b64encode(image_path.read_bytes()).decode("ascii")
        data_url = f"data:{mime_type_for(image_path)};base64,{image_b64}"
        return {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": PROMPT_TEMPLATE.format(language=target_language)},
                        {"type": "image_url", "image_url": {"url": data_url, "detail": "auto"}},
                    ],
                }
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

    def translate_image(self, image_path: str | Path, target_language: str = "English") -> str:
        """Extract the text in an image and translate it.

        Args:
            image_path: Image file to send.
            target_language: Language to translate into.

        Returns:
            The translated text, or NO_TEXT_MESSAGE if the model returned none.

        Raises:
            TranslationError: On I/O, network, HTTP or response format errors.
        """
        image_path = Path(image_path)
        try:
            payload = self.build_payload(image_path, target_language)
        except OSError as e:
            raise TranslationError(f"Could not read image {image_path}: {e}") from e

        if log.is_debug_enabled():
            logger.debug("api request", url=self.api_url, body=redact(json.dumps(payload), self.api_key))

        try:
            response = self._session.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TranslationError(f"Request to {self.api_url} failed: {e}") from e

        if log.is_debug_enabled():
            logger.debug("api response", status=response.status_code, body=redact(response.text, self.api_key))

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise TranslationError(f"Translation service returned HTTP {response.status_code}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise TranslationError("Translation service returned invalid JSON") from e

        return self._extract_text(data)

    @staticmethod
    def _extract_text(data: dict) -> str:
        try:
            choices = data["choices"]
            if not choices:
                return NO_TEXT_MESSAGE
            content = choices[0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise TranslationError(f"Unexpected response format: {e}") from e

        text = (content or "").strip()
        return text or NO_TEXT_MESSAGE
