"""Генерация набора вариаций паттерна, превью тайлинга и сохранение.

Принципы:
- SRP: оркестрация; пиксельная математика живёт в `TilingService`, кодеки — в `ImageService`.
- DIP: сервисы передаются в конструктор, по умолчанию создаются стандартные.
"""
from __future__ import annotations

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from PIL import Image

from pattern_studio.config import Settings
from pattern_studio.errors import LoadError, PatternError
from pattern_studio.models.pattern_model import PatternVariation, PreviewGrid
from pattern_studio.services.image_service import ImageService, ImageSource
from pattern_studio.services.tiling_service import TilingService

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_SIZE = 512
DEFAULT_FILENAME = "seamless-texture.png"

AI_ENHANCED_ID = "ai_enhanced"


@dataclass(frozen=True)
class _Algorithm:
    id: str
    name: str
    description: str
    is_recommended: bool
    method: str  # имя метода TilingService


ALGORITHMS = (
    _Algorithm("offset_blend", "Offset & Blend", "Classic seamless tile", True, "offset_blend"),
    _Algorithm("mirror", "Mirror Symmetry", "Kaleidoscopic effect", False, "mirror_symmetry"),
    _Algorithm(
        "graph_cut",
        "Graph-Cut (approx.)",
        "Soft overlap blending of opposite edges (not a true min-cut)",
        False,
        "overlap_blend",
    ),
    _Algorithm("edge_average", "Edge Average", "Smooth edge blending", False, "edge_average"),
)

AI_PLACEHOLDER = PatternVariation(
    id=AI_ENHANCED_ID,
    name="AI Enhanced",
    description="Creative AI-generated pattern (slower)",
    url="",
    is_recommended=False,
)


class PatternService:
    def __init__(
        self,
        image_service: Optional[ImageService] = None,
        tiling_service: Optional[TilingService] = None,
        max_workers: int = 4,
        output_dir: Path = Path("patterns"),
    ) -> None:
        self._image_service = image_service or ImageService()
        self._tiling_service = tiling_service or TilingService()
        self._max_workers = max(1, max_workers)
        self._output_dir = Path(output_dir)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PatternService":
        return cls(
            image_service=ImageService(http_timeout=settings.http_timeout),
            max_workers=settings.max_workers,
            output_dir=settings.output_dir,
        )

    @property
    def image_service(self) -> ImageService:
        return self._image_service

    # ---------- Вариации ----------
    def generate_all_variations(self, source: ImageSource) -> List[PatternVariation]:
        """Запускает четыре алгоритма параллельно и возвращает пять вариаций.

        Каждый алгоритм сам загружает свою копию источника. Если любой из них
        падает, исключение пробрасывается после завершения остальных потоков,
        частичный результат не возвращается.

        Returns:
            offset_blend, mirror, graph_cut, edge_average и заглушка ai_enhanced (пустой url).

        Raises:
            LoadError: источник недоступен.
            PatternError: вырожденное изображение.
        """
        started = time.perf_counter()
        logger.info("Generating %d pattern variations", len(ALGORITHMS))
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures = [executor.submit(self._run_algorithm, algo, source) for algo in ALGORITHMS]
            urls = [future.result() for future in futures]

        variations = [
            PatternVariation(
                id=algo.id,
                name=algo.name,
                description=algo.description,
                url=url,
                is_recommended=algo.is_recommended,
            )
            for algo, url in zip(ALGORITHMS, urls)
        ]
        variations.append(AI_PLACEHOLDER)
        logger.info("Pattern variations ready in %.2fs", time.perf_counter() - started)
        return variations

    def generate_variation(self, variation_id: str, source: ImageSource) -> PatternVariation:
        """Одна вариация по идентификатору (без параллелизма)."""
        for algo in ALGORITHMS:
            if algo.id == variation_id:
                url = self._run_algorithm(algo, source)
                return PatternVariation(algo.id, algo.name, algo.description, url, algo.is_recommended)
        raise PatternError(f"Неизвестная вариация: {variation_id}")

    def _run_algorithm(self, algo: _Algorithm, source: ImageSource) -> str:
        started = time.perf_counter()
        loaded = self._image_service.load_image(source)
        transform: Callable[[Image.Image], Image.Image] = getattr(self._tiling_service, algo.method)
        tile = transform(loaded.pil_image)
        url = self._image_service.encode_data_url(tile)
        logger.debug("%s done in %.3fs", algo.id, time.perf_counter() - started)
        return url

    # ---------- Превью ----------
    def preview_grid(self, scale: float, output_size: int = DEFAULT_PREVIEW_SIZE) -> PreviewGrid:
        """
        Геометрия превью. Сторона тайла = (scale/100) * size * 0.5 + size * 0.1:
        scale=1 даёт ~10% холста, scale=100 — ~60%.
        Масштаб не валидируется: вне 1..100 получится вырожденная сетка.
        """
        tile_size = (scale / 100.0) * output_size * 0.5 + output_size * 0.1
        if tile_size <= 0:
            return PreviewGrid(output_size=output_size, tile_size=tile_size, tiles_x=0, tiles_y=0)
        tiles = math.ceil(output_size / tile_size)
        return PreviewGrid(output_size=output_size, tile_size=tile_size, tiles_x=tiles, tiles_y=tiles)

    def render_tiled_preview(self, tile: Image.Image, scale: float, output_size: int = DEFAULT_PREVIEW_SIZE) -> Image.Image:
        """Рисует тайл сеткой по строкам; последний ряд/столбец обрезается холстом.

        Клетка k занимает пиксели [round(k*t), round((k+1)*t)): соседние клетки
        стыкуются без зазоров, поэтому ширина тайла может отличаться на 1 px.
        """
        grid = self.preview_grid(scale, output_size)
        canvas = Image.new("RGBA", (output_size, output_size), (0, 0, 0, 0))
        if grid.draw_count == 0:
            return canvas

        xs = [int(round(k * grid.tile_size)) for k in range(grid.tiles_x + 1)]
        ys = [int(round(k * grid.tile_size)) for k in range(grid.tiles_y + 1)]
        rgba = tile if tile.mode == "RGBA" else tile.convert("RGBA")
        scaled: Dict[Tuple[int, int], Image.Image] = {}
        for y0, y1 in zip(ys, ys[1:]):
            for x0, x1 in zip(xs, xs[1:]):
                cell = (x1 - x0, y1 - y0)
                if cell[0] <= 0 or cell[1] <= 0:
                    continue
                if cell not in scaled:
                    scaled[cell] = rgba.resize(cell, Image.Resampling.LANCZOS)
                canvas.paste(scaled[cell], (x0, y0), scaled[cell])
        return canvas

    def create_tiled_preview(self, pattern_url: str, scale: float, output_size: int = DEFAULT_PREVIEW_SIZE) -> str:
        """Превью повторения паттерна как PNG data URL."""
        loaded = self._image_service.load_image(pattern_url)
        preview = self.render_tiled_preview(loaded.pil_image, scale, output_size)
        return self._image_service.encode_data_url(preview)

    # ---------- Сохранение ----------
    def download_texture(
        self,
        pattern_url: str,
        filename: str = DEFAULT_FILENAME,
        directory: Optional[Path] = None,
    ) -> Path:
        """Сохраняет закодированный паттерн в файл и возвращает путь.

        Raises:
            LoadError: пустой или некорректный data URL.
        """
        if not pattern_url:
            raise LoadError("Нет данных паттерна для сохранения")
        _mime, payload = self._image_service.decode_data_url(pattern_url)
        target_dir = Path(directory) if directory is not None else self._output_dir
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / filename
        path.write_bytes(payload)
        logger.info("Pattern saved: %s (%d bytes)", path, len(payload))
        return path

    def export_variations(
        self,
        variations: List[PatternVariation],
        directory: Optional[Path] = None,
        scale: Optional[float] = None,
        preview_size: int = DEFAULT_PREVIEW_SIZE,
    ) -> List[Path]:
        """Сохраняет все непустые вариации (и их превью, если задан `scale`)."""
        saved: List[Path] = []
        for variation in variations:
            if variation.is_placeholder:
                continue
            saved.append(self.download_texture(variation.url, f"{variation.id}.png", directory))
            if scale is not None:
                preview_url = self.create_tiled_preview(variation.url, scale, preview_size)
                saved.append(self.download_texture(preview_url, f"{variation.id}_preview.png", directory))
        return saved
