"""Загрузка изображений из разных источников и кодирование результата в data URL.

Принципы:
- SRP: класс отвечает только за декодирование/кодирование и базовые свойства.
- OCP: новые источники добавляются отдельной веткой в `_read_bytes`.
- LSP/ISP: возвращает `SourceImage` с предсказуемыми полями; интерфейс узкий и конкретный.
"""
from __future__ import annotations

import base64
import binascii
import logging
import re
from io import BytesIO
from pathlib import Path
from typing import Optional, Tuple, Union
from urllib.parse import unquote_to_bytes

import requests
from PIL import Image, UnidentifiedImageError

from pattern_studio.errors import LoadError
from pattern_studio.models.image_model import SourceImage

logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, bytes, Image.Image]

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(?P<params>(;[\w=.-]+)*?)(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)


class ImageService:
    def __init__(self, http_timeout: float = 30.0, session: Optional[requests.Session] = None) -> None:
        self._http_timeout = http_timeout
        self._session = session

    def load_image(self, source: ImageSource) -> SourceImage:
        """Декодирует источник и возвращает собственную RGBA-копию вместе с метаданными.

        Args:
            source: data URL, http(s) URL, путь к файлу, сырые байты или готовый `PIL.Image.Image`.

        Returns:
            `SourceImage` c `PIL.Image.Image` (в режиме RGBA), размерами, режимом и размером данных.

        Raises:
            LoadError: если источник недоступен или не распознан как изображение.
        """
        if isinstance(source, Image.Image):
            # копия, чтобы алгоритмы не делили буфер
            pil_image = source.convert("RGBA") if source.mode != "RGBA" else source.copy()
            width, height = pil_image.size
            return SourceImage(
                source="memory",
                pil_image=pil_image,
                width=width,
                height=height,
                mode=source.mode,
                size_bytes=None,
            )

        label, payload = self._read_bytes(source)
        try:
            with Image.open(BytesIO(payload)) as img:
                mode = img.mode
                pil_image = img.convert("RGBA")
        except Image.DecompressionBombError as exc:
            raise LoadError(f"Изображение слишком большое: {label}") from exc
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise LoadError(f"Источник не является изображением: {label}") from exc

        width, height = pil_image.size
        logger.debug("Loaded %s: %dx%d %s, %d bytes", label, width, height, mode, len(payload))
        return SourceImage(
            source=label,
            pil_image=pil_image,
            width=width,
            height=height,
            mode=mode,
            size_bytes=len(payload),
        )

    def encode_data_url(self, image: Image.Image, fmt: str = "PNG") -> str:
        """Кодирует изображение в data URL (по умолчанию PNG)."""
        buffer = BytesIO()
        image.save(buffer, format=fmt)
        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:image/{fmt.lower()};base64,{encoded}"

    def decode_data_url(self, url: str) -> Tuple[str, bytes]:
        """Разбирает data URL.

        Returns:
            Пару (mime-тип, байты).

        Raises:
            LoadError: если строка не является корректным data URL.
        """
        match = _DATA_URL_RE.match(url.strip())
        if match is None:
            raise LoadError("Некорректный data URL")
        mime = match.group("mime") or "text/plain"
        data = match.group("data")
        if match.group("b64"):
            try:
                payload = base64.b64decode(data, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise LoadError("Некорректные base64-данные в data URL") from exc
        else:
            payload = unquote_to_bytes(data)
        return mime, payload

    # ---------- Вспомогательные функции ----------
    def _read_bytes(self, source: Union[str, Path, bytes]) -> Tuple[str, bytes]:
        if isinstance(source, (bytes, bytearray)):
            return "bytes", bytes(source)

        if isinstance(source, str) and source.startswith("data:"):
            _mime, payload = self.decode_data_url(source)
            return "data:", payload

        if isinstance(source, str) and source.startswith(("http://", "https://")):
            return source, self._fetch(source)

        path = Path(source)
        if not path.exists() or not path.is_file():
            raise LoadError(f"Файл не найден: {path}")
        try:
            return str(path), path.read_bytes()
        except OSError as exc:
            raise LoadError(f"Не удалось прочитать файл: {path}") from exc

    def _fetch(self, url: str) -> bytes:
        getter = self._session.get if self._session is not None else requests.get
        try:
            response = getter(url, timeout=self._http_timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise LoadError(f"Не удалось загрузить {url}: {exc}") from exc
        return response.content
