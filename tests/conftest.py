"""Shared fixtures for ASO Forge tests."""

import base64
import io
import json
from unittest.mock import AsyncMock, Mock

import pytest
from PIL import Image

from aso_forge.ai_client import GenerationClient
from aso_forge.models import AnalysisResult
from aso_forge.retry import RetryPolicy


async def no_sleep(_seconds):
    return None


def chat_response(content):
    """Build an object shaped like a chat completion with one choice."""
    if content is not None and not isinstance(content, str):
        content = json.dumps(content)
    response = Mock()
    response.choices = [Mock()]
    response.choices[0].message.content = content
    return response


def image_response(*payloads):
    """Build an object shaped like an images API response."""
    response = Mock()
    response.data = []
    for payload in payloads:
        item = Mock()
        item.b64_json = base64.b64encode(payload).decode("ascii") if payload is not None else None
        response.data.append(item)
    return response


def png_bytes(size=(64, 64), color=(40, 120, 220, 255)):
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, "PNG")
    return buffer.getvalue()


def png_data_url(size=(64, 64), color=(40, 120, 220, 255)):
    return "data:image/png;base64," + base64.b64encode(png_bytes(size, color)).decode("ascii")


@pytest.fixture
def analysis():
    return AnalysisResult(
        category="Productivity",
        target_audience="Remote workers juggling many tabs",
        core_features=["Tab grouping", "Session restore", "Memory saver"],
        primary_keywords=["tab manager", "session saver", "tab groups"],
        tone="Calm, Efficient, Friendly",
        seo_strategy="Lead with 'tab manager'",
        market_analysis="Crowded but shallow",
        customer_psychology="Fear of losing work",
    )


@pytest.fixture
def openai_client():
    """AsyncMock standing in for openai.AsyncOpenAI."""
    client = AsyncMock()
    client.chat.completions.create = AsyncMock()
    client.images.generate = AsyncMock()
    client.images.edit = AsyncMock()
    return client


@pytest.fixture
def generation_client(openai_client):
    return GenerationClient(
        openai_client,
        retry_policy=RetryPolicy(retries=3, base_delay=0.0),
        sleep=no_sleep,
    )
