"""Модели данных для исходных изображений.

Принципы:
- SRP: только структура данных, без логики обработки.
- Чистый код: неизменяемость (`frozen=True`) для предсказуемости.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from PIL import Image


@dataclass(frozen=True)
class SourceImage:
    """Декодированный источник и его метаданные.

    Fields:
        source: Откуда загружено: путь, URL или "data:"/"bytes"/"memory".
        pil_image: Изображение PIL в режиме RGBA (собственная копия).
        width: Ширина, px.
        height: Высота, px.
        mode: Режим PIL исходника до конвертации, например "RGB".
        size_bytes: Размер закодированных данных, если известен.
    """
    source: str
    pil_image: Image.Image
    width: int
    height: int
    mode: str
    size_bytes: Optional[int]
