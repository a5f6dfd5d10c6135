"""Клиент серверной AI-генерации бесшовного паттерна.

Заполняет вариацию "ai_enhanced", которую `PatternService` возвращает пустой.
Сервер принимает `{"designImage": <data URL>}` и отвечает
`{"success": true, "patternUrl": <data URL>, "mimeType": ..., "description": ...}`.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from pattern_studio.config import Settings
from pattern_studio.errors import AIPatternError
from pattern_studio.models.pattern_model import PatternVariation
from pattern_studio.services.image_service import ImageService, ImageSource
from pattern_studio.services.pattern_service import AI_PLACEHOLDER

logger = logging.getLogger(__name__)


class AIPatternService:
    def __init__(
        self,
        endpoint: Optional[str],
        token: Optional[str] = None,
        timeout: float = 30.0,
        image_service: Optional[ImageService] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._endpoint = endpoint
        self._token = token
        self._timeout = timeout
        self._image_service = image_service or ImageService(http_timeout=timeout)
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "AIPatternService":
        return cls(endpoint=settings.ai_endpoint, token=settings.ai_token, timeout=settings.http_timeout)

    @property
    def is_configured(self) -> bool:
        return bool(self._endpoint)

    def enhance(self, source: ImageSource) -> PatternVariation:
        """Отправляет исходник на сервер и возвращает заполненную вариацию AI Enhanced.

        Raises:
            AIPatternError: сервис не настроен, HTTP-ошибка или некорректный ответ.
            LoadError: исходник не загружается.
        """
        if not self._endpoint:
            raise AIPatternError("Адрес AI-сервиса не задан (PATTERN_STUDIO_AI_ENDPOINT)")

        loaded = self._image_service.load_image(source)
        design_image = self._image_service.encode_data_url(loaded.pil_image)

        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        logger.info("Requesting AI-enhanced pattern from %s", self._endpoint)
        try:
            response = self._session.post(
                self._endpoint,
                json={"designImage": design_image},
                headers=headers,
                timeout=self._timeout,
            )
            response.raise_for_status()
            body: Dict[str, Any] = response.json()
        except requests.RequestException as exc:
            raise AIPatternError(f"AI-сервис недоступен: {exc}") from exc
        except ValueError as exc:
            raise AIPatternError("AI-сервис вернул не JSON") from exc

        pattern_url = body.get("patternUrl")
        if not body.get("success") or not isinstance(pattern_url, str) or not pattern_url.startswith("data:"):
            message = body.get("message") or "некорректный ответ"
            raise AIPatternError(f"AI-сервис не вернул паттерн: {message}")

        description = body.get("description") or AI_PLACEHOLDER.description
        logger.info("AI-enhanced pattern received (%s)", body.get("mimeType", "image/png"))
        return PatternVariation(
            id=AI_PLACEHOLDER.id,
            name=AI_PLACEHOLDER.name,
            description=description,
            url=pattern_url,
            is_recommended=False,
        )
