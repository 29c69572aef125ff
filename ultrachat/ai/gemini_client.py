"""
Gemini streaming client (OpenAI-compatible endpoint)
"""
from typing import Iterator, List, Optional, Sequence
from openai import OpenAI
from openai import OpenAIError
from ultrachat.config import Config
from ultrachat.models.message import ImageAttachment, Role
from ultrachat.models.settings import ChatSettings
from ultrachat.utils.logger import get_logger

logger = get_logger("gemini_client")

# Transcript roles -> wire roles
_WIRE_ROLES = {
    Role.USER.value: "user",
    Role.MODEL.value: "assistant",
}


class TransportError(Exception):
    """The outbound call or its stream failed; the cause is chained"""

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.cause = cause


class GeminiClient:
    """Wrapper that turns one user turn into a stream of text fragments"""

    def __init__(self, api_key=None, base_url=None, client=None,
                 text_model=None, vision_model=None):
        """
        Initialize client

        Args:
            api_key: API key (defaults to Config.GEMINI_API_KEY)
            base_url: Endpoint (defaults to Config.GEMINI_BASE_URL)
            client: Pre-built OpenAI-compatible client, mainly for tests
            text_model: Model used for text-only turns
            vision_model: Model used for turns with images
        """
        self.client = client or OpenAI(
            api_key=api_key or Config.GEMINI_API_KEY,
            base_url=base_url or Config.GEMINI_BASE_URL
        )
        self.text_model = text_model or Config.TEXT_MODEL
        self.vision_model = vision_model or Config.VISION_MODEL

        logger.info(f"Gemini client initialized (text: {self.text_model}, vision: {self.vision_model})")

    def select_model(self, images: Sequence[ImageAttachment]) -> str:
        """Pick the vision model when any image is attached"""
        return self.vision_model if images else self.text_model

    def build_request(self, prompt: str, images: Sequence[ImageAttachment],
                      history: Sequence[dict], settings: ChatSettings) -> dict:
        """
        Build chat completion arguments for one turn

        Image turns are single-turn: history is not attached.

        Args:
            prompt: New user text (may be empty when images are attached)
            images: Attachments for this turn
            history: Prior role/text pairs in transcript order
            settings: Settings snapshot for this turn

        Returns:
            dict: Keyword arguments for chat.completions.create
        """
        messages: List[dict] = []
        if settings.system_instruction:
            messages.append({"role": "system", "content": settings.system_instruction})

        if images:
            parts = [
                {"type": "image_url", "image_url": {"url": img.to_data_url()}}
                for img in images
            ]
            parts.append({"type": "text", "text": prompt})
            messages.append({"role": "user", "content": parts})
        else:
            for entry in history:
                messages.append({
                    "role": _WIRE_ROLES.get(entry["role"], entry["role"]),
                    "content": entry["text"]
                })
            messages.append({"role": "user", "content": prompt})

        return {
            "model": self.select_model(images),
            "messages": messages,
            "temperature": settings.temperature,
            "stream": True
        }

    def stream_reply(self, prompt: str, images: Sequence[ImageAttachment],
                     history: Sequence[dict], settings: ChatSettings) -> Iterator[str]:
        """
        Send one turn and yield response fragments as they arrive

        No retry is attempted; the first failure raises TransportError.

        Yields:
            str: Non-empty text fragments in arrival order
        """
        request = self.build_request(prompt, images, history, settings)
        logger.debug(
            f"Sending streaming request to {request['model']} "
            f"({len(images)} images, {0 if images else len(history)} history turns)"
        )

        stream = None
        fragments = 0
        try:
            stream = self.client.chat.completions.create(**request)
            for chunk in stream:
                text = _chunk_text(chunk)
                if text:
                    fragments += 1
                    yield text

        except OpenAIError as e:
            logger.error(f"Gemini API error after {fragments} fragments: {e}")
            raise TransportError(f"Gemini request failed: {e}", cause=e) from e

        finally:
            if stream is not None and hasattr(stream, "close"):
                stream.close()

        logger.info(f"Stream finished: {fragments} fragments")

    def test_connection(self, settings: Optional[ChatSettings] = None):
        """
        Test Gemini API connection

        Returns:
            bool: True if at least one fragment was received
        """
        settings = settings or ChatSettings(system_instruction="", temperature=0.0)
        reply = self.stream_reply("Hello", [], [], settings)
        try:
            next(reply)
            logger.info("Gemini API connection test successful")
            return True

        except StopIteration:
            logger.error("Gemini API connection test returned no text")
            return False

        except TransportError as e:
            logger.error(f"Gemini API connection test failed: {e}")
            return False

        finally:
            reply.close()


def _chunk_text(chunk) -> str:
    """Extract delta text from a streamed completion chunk"""
    choices = getattr(chunk, "choices", None)
    if not choices:
        return ""
    delta = getattr(choices[0], "delta", None)
    return getattr(delta, "content", None) or ""
