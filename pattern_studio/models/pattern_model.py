"""Модели результатов генерации паттернов."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class CropRegion:
    """Наибольший квадрат по центру исходника.

    Fields:
        size: Сторона квадрата, px.
        origin_x: Левый край в координатах исходника.
        origin_y: Верхний край в координатах исходника.
    """
    size: int
    origin_x: int
    origin_y: int

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """Прямоугольник для `Image.crop`."""
        return (self.origin_x, self.origin_y, self.origin_x + self.size, self.origin_y + self.size)


@dataclass(frozen=True)
class PatternVariation:
    """Одна вариация бесшовного тайла для экрана выбора.

    Fields:
        id: Идентификатор ("offset_blend", "mirror", ...).
        name: Отображаемое имя.
        description: Короткое описание.
        url: PNG в виде data URL; пустая строка для заглушки AI.
        is_recommended: Рекомендуемая вариация.
    """
    id: str
    name: str
    description: str
    url: str
    is_recommended: bool = False

    @property
    def is_placeholder(self) -> bool:
        return not self.url


@dataclass(frozen=True)
class PreviewGrid:
    """Геометрия превью: сторона тайла и число тайлов по каждой оси."""
    output_size: int
    tile_size: float
    tiles_x: int
    tiles_y: int

    @property
    def draw_count(self) -> int:
        return self.tiles_x * self.tiles_y
