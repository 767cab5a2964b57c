"""Boundary to the remote generation service (OpenAI chat and image APIs)."""

import base64
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from .config import DEFAULT_IMAGE_MODEL, DEFAULT_TEXT_MODEL
from .retry import RATE_LIMIT_POLICY, RetryPolicy, Sleep, with_retry

logger = logging.getLogger(__name__)

IMAGE_SIZES = {
    "1:1": "1024x1024",
    "16:9": "1536x1024",
}

_DATA_URL = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.*)$", re.DOTALL)


@dataclass
class InlineImage:
    """Raw image bytes plus their media type."""

    mime_type: str
    data: bytes

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('ascii')}"

    @classmethod
    def from_data_url(cls, url: str) -> "InlineImage":
        """Decode a ``data:<mime>;base64,<payload>`` URL.

        A bare base64 payload without the ``data:`` prefix is read as PNG.
        """
        match = _DATA_URL.match(url.strip())
        if match:
            return cls(match.group("mime"), base64.b64decode(match.group("data")))
        return cls("image/png", base64.b64decode(url.strip()))


@dataclass
class GenerationRequest:
    """One request to the text model.

    ``response_schema`` must be a JSON Schema whose root is an object; when
    present the model is asked for structured output matching it.
    """

    system_instruction: str
    user_message: str
    response_schema: Optional[Dict[str, Any]] = None
    schema_name: str = "response"
    temperature: Optional[float] = None
    image: Optional[InlineImage] = None


@dataclass
class ModelResponse:
    """Primary text output and any inline image parts."""

    text: Optional[str] = None
    parts: List[InlineImage] = field(default_factory=list)

    def first_image(self) -> Optional[InlineImage]:
        return self.parts[0] if self.parts else None


class GenerationClient:
    """Issues text, JSON, vision and image requests through the retry coordinator."""

    def __init__(
        self,
        client: AsyncOpenAI,
        text_model: str = DEFAULT_TEXT_MODEL,
        image_model: str = DEFAULT_IMAGE_MODEL,
        retry_policy: RetryPolicy = RATE_LIMIT_POLICY,
        sleep: Optional[Sleep] = None,
    ):
        """
        Initialize the generation client.

        Args:
            client: Async OpenAI client instance
            text_model: Chat model used for text, JSON and vision requests
            image_model: Model used for image generation
            retry_policy: Rate-limit retry policy applied to every call
            sleep: Optional awaitable sleep (tests pass a no-op)
        """
        self.client = client
        self.text_model = text_model
        self.image_model = image_model
        self.retry_policy = retry_policy
        self.sleep = sleep

    def _build_messages(self, request: GenerationRequest) -> List[Dict[str, Any]]:
        if request.image is not None:
            user_content: Any = [
                {"type": "image_url", "image_url": {"url": request.image.to_data_url()}},
                {"type": "text", "text": request.user_message},
            ]
        else:
            user_content = request.user_message

        return [
            {"role": "system", "content": request.system_instruction},
            {"role": "user", "content": user_content},
        ]

    async def generate_text(self, request: GenerationRequest) -> ModelResponse:
        """
        Run a chat completion for ``request``.

        Returns:
            ModelResponse whose ``text`` is the first choice's content
            (``None`` when the model returned nothing)
        """
        kwargs: Dict[str, Any] = {}
        if request.response_schema is not None:
            kwargs["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": request.schema_name, "schema": request.response_schema},
            }
        if request.temperature is not None:
            kwargs["temperature"] = request.temperature

        messages = self._build_messages(request)

        async def call():
            return await self.client.chat.completions.create(
                model=self.text_model,
                messages=messages,
                **kwargs,
            )

        logger.debug(f"Text request ({request.schema_name}) to {self.text_model}")
        response = await with_retry(call, self.retry_policy, self.sleep)

        if not response.choices:
            return ModelResponse(text=None)
        return ModelResponse(text=response.choices[0].message.content)

    async def generate_image(
        self,
        prompt: str,
        aspect_ratio: str = "1:1",
        reference_image: Optional[InlineImage] = None,
    ) -> ModelResponse:
        """
        Generate an image, optionally steering style with a reference image.

        Args:
            prompt: Finished image prompt
            aspect_ratio: "1:1" or "16:9"
            reference_image: Image to edit from for style transfer

        Returns:
            ModelResponse with one inline image part per returned image
        """
        size = IMAGE_SIZES.get(aspect_ratio, IMAGE_SIZES["1:1"])
        extra: Dict[str, Any] = {}
        if self.image_model.startswith("dall-e"):
            extra["response_format"] = "b64_json"

        async def call():
            if reference_image is not None:
                ext = reference_image.mime_type.split("/")[-1]
                return await self.client.images.edit(
                    model=self.image_model,
                    image=(f"reference.{ext}", reference_image.data, reference_image.mime_type),
                    prompt=prompt,
                    size=size,
                    **extra,
                )
            return await self.client.images.generate(
                model=self.image_model,
                prompt=prompt,
                size=size,
                n=1,
                **extra,
            )

        logger.debug(f"Image request ({aspect_ratio}) to {self.image_model}")
        response = await with_retry(call, self.retry_policy, self.sleep)

        parts = []
        for item in response.data or []:
            payload = getattr(item, "b64_json", None)
            if payload:
                parts.append(InlineImage("image/png", base64.b64decode(payload)))
        return ModelResponse(text=None, parts=parts)
