from __future__ import annotations

import logging
from io import BytesIO

import numpy as np
import pytest
from PIL import Image

from pattern_studio.services.image_service import ImageService
from pattern_studio.services.pattern_service import PatternService
from pattern_studio.services.tiling_service import TilingService


@pytest.fixture
def tiling() -> TilingService:
    return TilingService()


@pytest.fixture
def image_service() -> ImageService:
    return ImageService(http_timeout=5.0)


@pytest.fixture
def pattern_service(image_service: ImageService, tmp_path) -> PatternService:
    return PatternService(image_service=image_service, max_workers=4, output_dir=tmp_path / "out")


@pytest.fixture
def solid_red() -> Image.Image:
    return Image.new("RGBA", (256, 256), (255, 0, 0, 255))


def make_noise(width: int, height: int, seed: int = 7, alpha: int = 255) -> Image.Image:
    rng = np.random.default_rng(seed)
    arr = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    arr[..., 3] = alpha
    return Image.fromarray(arr)


@pytest.fixture
def noise() -> Image.Image:
    return make_noise(64, 64)


@pytest.fixture
def png_bytes(noise: Image.Image) -> bytes:
    buffer = BytesIO()
    noise.convert("RGB").save(buffer, format="PNG")
    return buffer.getvalue()


def rgba(image: Image.Image) -> np.ndarray:
    return np.asarray(image.convert("RGBA"), dtype=np.int32)


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
