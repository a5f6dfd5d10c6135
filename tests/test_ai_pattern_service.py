from __future__ import annotations

import pytest
import requests
from PIL import Image

from pattern_studio.errors import AIPatternError
from pattern_studio.services.ai_pattern_service import AIPatternService

PATTERN_URL = "data:image/png;base64,iVBORw0KGgo="


class _FakeResponse:
    def __init__(self, body=None, status: int = 200, invalid_json: bool = False) -> None:
        self._body = body
        self.status_code = status
        self._invalid_json = invalid_json

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._invalid_json:
            raise ValueError("not json")
        return self._body


class _FakeSession:
    def __init__(self, response=None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, json, headers, timeout):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def source() -> Image.Image:
    return Image.new("RGBA", (16, 16), (0, 255, 0, 255))


def test_not_configured(source):
    service = AIPatternService(endpoint=None, session=_FakeSession())
    assert not service.is_configured
    with pytest.raises(AIPatternError):
        service.enhance(source)


def test_enhance_success(source):
    session = _FakeSession(
        _FakeResponse({"success": True, "patternUrl": PATTERN_URL, "mimeType": "image/png", "description": "Leaves"})
    )
    service = AIPatternService(endpoint="http://ai.local/api/seamless-pattern/ai-enhanced", token="t0k", timeout=3, session=session)

    variation = service.enhance(source)

    assert variation.id == "ai_enhanced"
    assert variation.url == PATTERN_URL
    assert variation.description == "Leaves"
    call = session.calls[0]
    assert call["url"] == "http://ai.local/api/seamless-pattern/ai-enhanced"
    assert call["json"]["designImage"].startswith("data:image/png;base64,")
    assert call["headers"]["Authorization"] == "Bearer t0k"
    assert call["timeout"] == 3


def test_enhance_without_token_has_no_auth_header(source):
    session = _FakeSession(_FakeResponse({"success": True, "patternUrl": PATTERN_URL}))
    AIPatternService(endpoint="http://ai.local", session=session).enhance(source)
    assert "Authorization" not in session.calls[0]["headers"]


def test_enhance_unsuccessful_response(source):
    session = _FakeSession(_FakeResponse({"success": False, "message": "Failed to generate"}))
    with pytest.raises(AIPatternError, match="Failed to generate"):
        AIPatternService(endpoint="http://ai.local", session=session).enhance(source)


def test_enhance_http_error(source):
    session = _FakeSession(_FakeResponse({}, status=500))
    with pytest.raises(AIPatternError):
        AIPatternService(endpoint="http://ai.local", session=session).enhance(source)


def test_enhance_connection_error(source):
    session = _FakeSession(error=requests.ConnectionError("down"))
    with pytest.raises(AIPatternError, match="down"):
        AIPatternService(endpoint="http://ai.local", session=session).enhance(source)


def test_enhance_invalid_json(source):
    session = _FakeSession(_FakeResponse(invalid_json=True))
    with pytest.raises(AIPatternError):
        AIPatternService(endpoint="http://ai.local", session=session).enhance(source)
