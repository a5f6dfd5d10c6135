"""Алгоритмы бесшовного тайлинга.

Каждый метод принимает RGBA-изображение произвольных пропорций, вырезает из него
центральный квадрат и возвращает новый квадратный RGBA-тайл. Вход не мутируется.

Двухпроходные алгоритмы (offset & blend, edge average) читают во втором
проходе результат первого: промежуточный буфер копируется явно.
"""
from __future__ import annotations

import logging
import math
from typing import Tuple

import numpy as np
from PIL import Image

from pattern_studio.errors import PatternError
from pattern_studio.models.pattern_model import CropRegion

logger = logging.getLogger(__name__)

SEAM_BAND_RATIO = 0.15
EDGE_ZONE_RATIO = 0.15
PATCH_RATIO = 0.3
OVERLAP_RATIO = 0.15
OVERLAP_OPACITY = 0.5
GRADIENT_PEAK_ALPHA = 0.3


class TilingService:
    # ---------- Кроп ----------
    def crop_region(self, width: int, height: int) -> CropRegion:
        """Наибольший квадрат по центру изображения `width`×`height`.

        Raises:
            PatternError: если квадрат вырожден (нулевая сторона).
        """
        size = min(width, height)
        if size <= 0:
            raise PatternError(f"Нельзя построить тайл из изображения {width}×{height}")
        return CropRegion(size=size, origin_x=(width - size) // 2, origin_y=(height - size) // 2)

    def crop_square(self, image: Image.Image) -> Image.Image:
        region = self.crop_region(*image.size)
        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        return rgba.crop(region.box)

    # ---------- 1) Сдвиг квадрантов + смешивание швов ----------
    def offset_blend(self, image: Image.Image) -> Image.Image:
        """
        Классический бесшовный тайл:
        - квадранты меняются по диагонали (края исходника сходятся в центре);
        - полоса 15% вокруг горизонтальной, затем вертикальной средней линии
          смешивается с пикселями с другой стороны шва.
        Альфа результата везде 255.
        """
        data = self._to_array(self.crop_square(image))
        size = data.shape[0]
        half = size // 2
        # циклический сдвиг на половину: BR -> TL, BL -> TR, TR -> BL, TL -> BR
        data = np.roll(data, shift=(-half, -half), axis=(0, 1))

        blend_width = int(math.floor(size * SEAM_BAND_RATIO))
        rows, row_factors, row_opposite = self._seam_band(size, blend_width)
        cols, col_factors, col_opposite = self._seam_band(size, blend_width)

        # Горизонтальный шов: смешиваем строки сверху/снизу
        snapshot = data.copy()
        if rows.size:
            w = (row_factors * 0.5)[:, None, None]
            mixed = snapshot[rows, :, :3] * (1.0 - w) + snapshot[row_opposite, :, :3] * w
            data[rows, :, :3] = np.clip(np.floor(mixed), 0, 255)

        # Вертикальный шов читает уже смешанные по горизонтали данные
        snapshot = data.copy()
        if cols.size:
            w = (col_factors * 0.5)[None, :, None]
            mixed = snapshot[:, cols, :3] * (1.0 - w) + snapshot[:, col_opposite, :3] * w
            data[:, cols, :3] = np.clip(np.floor(mixed), 0, 255)

        data[..., 3] = 255
        logger.debug("offset_blend: size=%d, band=%d", size, blend_width)
        return self._to_image(data)

    # ---------- 2) Зеркальная симметрия ----------
    def mirror_symmetry(self, image: Image.Image) -> Image.Image:
        """
        Калейдоскоп: левый верхний квадрант отражается во все четыре четверти.
        Края совпадают по построению, смешивание не нужно.
        """
        src = self._to_array(self.crop_square(image))
        size = src.shape[0]
        q = (size + 1) // 2
        quadrant = src[:q, :q]

        out = np.zeros_like(src)
        # порядок записи как при отрисовке: TL, TR, BL, BR
        out[:q, :q] = quadrant
        out[:q, size - q:] = quadrant[:, ::-1]
        out[size - q:, :q] = quadrant[::-1, :]
        out[size - q:, size - q:] = quadrant[::-1, ::-1]
        logger.debug("mirror_symmetry: size=%d, quadrant=%d", size, q)
        return self._to_image(out)

    # ---------- 3) Перекрытие краёв («graph-cut», приближённо) ----------
    def overlap_blend(self, image: Image.Image) -> Image.Image:
        """
        Приближение к graph-cut: настоящего поиска шва минимальной стоимости нет.
        - левая полоса накладывается на правый край с непрозрачностью 0.5;
        - затем верхняя полоса результата накладывается на нижний край;
        - справа градиент чёрного (0 → 0.3 → 0) в режиме overlay.
        Тайл получается мягче, но не математически бесшовным.
        """
        data = self._to_array(self.crop_square(image)).astype(np.float64) / 255.0
        size = data.shape[0]
        patch = int(size * PATCH_RATIO)
        overlap = int(size * OVERLAP_RATIO)

        if overlap > 0:
            left_strip = data[:, :overlap].copy()
            data[:, size - overlap:] = self._composite_over(data[:, size - overlap:], left_strip, OVERLAP_OPACITY)
            top_strip = data[:overlap, :].copy()
            data[size - overlap:, :] = self._composite_over(data[size - overlap:, :], top_strip, OVERLAP_OPACITY)

        if patch > 0:
            # альфа градиента по центрам пикселей
            t = (np.arange(patch, dtype=np.float64) + 0.5) / patch
            alpha = GRADIENT_PEAK_ALPHA * (1.0 - np.abs(2.0 * t - 1.0))
            region = data[:, size - patch:]
            data[:, size - patch:] = self._overlay_black(region, alpha[None, :])

        logger.debug("overlap_blend: size=%d, patch=%d, overlap=%d", size, patch, overlap)
        return self._to_image(np.rint(data * 255.0))

    # ---------- 4) Усреднение противоположных краёв ----------
    def edge_average(self, image: Image.Image) -> Image.Image:
        """
        Каждый пиксель в зоне 15% у края тянется к среднему с зеркальным пикселем
        противоположного края; на самом краю пиксель равен среднему.
        Сначала лево/право, затем верх/низ по уже смешанному буферу. Альфа не трогается.
        """
        data = self._to_array(self.crop_square(image))
        size = data.shape[0]
        zone = int(math.floor(size * EDGE_ZONE_RATIO))
        if zone == 0:
            return self._to_image(data)

        factor = np.arange(zone, dtype=np.float64) / zone

        # Лево/право
        f = factor[None, :, None]
        left = data[:, :zone, :3].astype(np.float64)
        right = data[:, ::-1][:, :zone, :3].astype(np.float64)
        avg = (left + right) / 2.0
        new_left = np.floor(left * f + avg * (1.0 - f))
        new_right = np.floor(right * f + avg * (1.0 - f))
        data[:, :zone, :3] = new_left
        data[:, size - zone:, :3] = new_right[:, ::-1]

        # Верх/низ по результату первого прохода
        f = factor[:, None, None]
        top = data[:zone, :, :3].astype(np.float64)
        bottom = data[::-1][:zone, :, :3].astype(np.float64)
        avg = (top + bottom) / 2.0
        new_top = np.floor(top * f + avg * (1.0 - f))
        new_bottom = np.floor(bottom * f + avg * (1.0 - f))
        data[:zone, :, :3] = new_top
        data[size - zone:, :, :3] = new_bottom[::-1]

        logger.debug("edge_average: size=%d, zone=%d", size, zone)
        return self._to_image(data)

    # ---------- Вспомогательные функции ----------
    def _to_array(self, image: Image.Image) -> np.ndarray:
        """Копия пикселей (H, W, 4) в uint8."""
        return np.array(image, dtype=np.uint8)

    def _to_image(self, arr: np.ndarray) -> Image.Image:
        out = np.clip(arr, 0, 255).astype(np.uint8)
        return Image.fromarray(out)

    def _seam_band(self, size: int, blend_width: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Индексы полосы вокруг средней линии, веса смешивания и индексы
        «противоположной» стороны шва.
        blend_factor = 1 - |i - size/2| / blend_width (1 в центре, 0 на краю полосы).
        При нечётной стороне крайняя строка полосы получает небольшой отрицательный вес,
        поэтому результат смешивания обрезается до 0..255.
        """
        if blend_width <= 0:
            empty = np.empty(0, dtype=np.intp)
            return empty, np.empty(0, dtype=np.float64), empty
        mid = size / 2.0
        half = size // 2
        start = int(math.floor(mid - blend_width))
        stop = int(math.floor(mid + blend_width))
        idx = np.arange(max(start, 0), min(stop, size), dtype=np.intp)
        factors = 1.0 - np.abs(idx - mid) / blend_width
        opposite = np.where(idx < mid, idx + half, idx - half)
        return idx, factors, opposite

    def _composite_over(self, dst: np.ndarray, src: np.ndarray, opacity: float) -> np.ndarray:
        """Source-over для RGBA в [0, 1] без премультипликации; `opacity` умножает альфу источника."""
        src_a = src[..., 3:4] * opacity
        dst_a = dst[..., 3:4]
        out_a = src_a + dst_a * (1.0 - src_a)
        with np.errstate(divide="ignore", invalid="ignore"):
            rgb = (src[..., :3] * src_a + dst[..., :3] * dst_a * (1.0 - src_a)) / out_a
        rgb = np.where(out_a > 0, rgb, 0.0)
        return np.concatenate([rgb, out_a], axis=-1)

    def _overlay_black(self, backdrop: np.ndarray, alpha: np.ndarray) -> np.ndarray:
        """
        Режим overlay с чёрным источником прозрачности `alpha`.
        B(cb, 0) = 0 при cb <= 0.5, иначе 2*cb - 1 (hard-light с переставленными аргументами).
        """
        cb = backdrop[..., :3]
        ab = backdrop[..., 3:4]
        a_s = alpha[..., None]
        blended = np.where(cb <= 0.5, 0.0, 2.0 * cb - 1.0)
        out_a = a_s + ab * (1.0 - a_s)
        # чёрный источник: слагаемое as*(1-ab)*cs равно нулю
        co = a_s * ab * blended + (1.0 - a_s) * ab * cb
        with np.errstate(divide="ignore", invalid="ignore"):
            rgb = co / out_a
        rgb = np.where(out_a > 0, rgb, 0.0)
        return np.concatenate([rgb, out_a], axis=-1)
