from __future__ import annotations

import threading

import numpy as np
import pytest
from PIL import Image

from conftest import make_noise, rgba
from pattern_studio.errors import LoadError, PatternError
from pattern_studio.services.pattern_service import AI_ENHANCED_ID, PatternService


def _decode(service: PatternService, url: str) -> Image.Image:
    return service.image_service.load_image(url).pil_image


# ---------- Вариации ----------
def test_generate_all_variations_returns_five_in_order(pattern_service, noise):
    variations = pattern_service.generate_all_variations(noise)
    assert [v.id for v in variations] == ["offset_blend", "mirror", "graph_cut", "edge_average", AI_ENHANCED_ID]
    assert [v.is_recommended for v in variations] == [True, False, False, False, False]


def test_ai_placeholder_has_empty_url(pattern_service, noise):
    variations = pattern_service.generate_all_variations(noise)
    placeholder = variations[-1]
    assert placeholder.name == "AI Enhanced"
    assert placeholder.url == ""
    assert placeholder.is_placeholder


def test_variations_are_png_data_urls_of_crop_size(pattern_service):
    variations = pattern_service.generate_all_variations(make_noise(96, 64))
    for variation in variations[:4]:
        assert variation.url.startswith("data:image/png;base64,")
        assert _decode(pattern_service, variation.url).size == (64, 64)


def test_generate_from_file_path(pattern_service, noise, tmp_path):
    path = tmp_path / "src.png"
    noise.save(path)
    variations = pattern_service.generate_all_variations(str(path))
    assert all(v.url for v in variations[:4])


def test_each_algorithm_loads_its_own_copy(pattern_service, noise, monkeypatch):
    loaded = []
    lock = threading.Lock()
    original = pattern_service.image_service.load_image

    def counting_load(source):
        result = original(source)
        with lock:
            loaded.append(result.pil_image)
        return result

    monkeypatch.setattr(pattern_service.image_service, "load_image", counting_load)
    pattern_service.generate_all_variations(noise)
    assert len(loaded) == 4
    assert len({id(image) for image in loaded}) == 4


def test_failure_of_one_algorithm_fails_whole_call(pattern_service, noise, monkeypatch):
    def boom(_image):
        raise PatternError("boom")

    monkeypatch.setattr(pattern_service._tiling_service, "edge_average", boom)
    with pytest.raises(PatternError, match="boom"):
        pattern_service.generate_all_variations(noise)


def test_zero_size_image_fails_whole_call(pattern_service):
    with pytest.raises(PatternError):
        pattern_service.generate_all_variations(Image.new("RGBA", (0, 0)))


def test_missing_source_fails_with_load_error(pattern_service, tmp_path):
    with pytest.raises(LoadError):
        pattern_service.generate_all_variations(str(tmp_path / "missing.png"))


def test_generate_single_variation(pattern_service, noise):
    variation = pattern_service.generate_variation("mirror", noise)
    assert variation.id == "mirror"
    assert variation.url
    with pytest.raises(PatternError, match="nope"):
        pattern_service.generate_variation("nope", noise)


# ---------- Превью ----------
def test_preview_grid_for_scale_50():
    grid = PatternService().preview_grid(50, 512)
    assert grid.tile_size == pytest.approx(179.2)
    assert (grid.tiles_x, grid.tiles_y) == (3, 3)
    assert grid.draw_count == 9


@pytest.mark.parametrize("scale,expected", [(1, 53.76), (100, 307.2)])
def test_preview_tile_size_range(scale, expected):
    assert PatternService().preview_grid(scale, 512).tile_size == pytest.approx(expected)


def test_preview_scale_is_not_clamped():
    service = PatternService()
    assert service.preview_grid(200, 512).tile_size == pytest.approx(563.2)
    degenerate = service.preview_grid(-50, 512)
    assert degenerate.draw_count == 0


def test_create_tiled_preview_covers_canvas(pattern_service, image_service):
    tile_url = image_service.encode_data_url(Image.new("RGBA", (32, 32), (255, 0, 0, 255)))
    preview = _decode(pattern_service, pattern_service.create_tiled_preview(tile_url, 50))
    assert preview.size == (512, 512)
    assert (rgba(preview) == [255, 0, 0, 255]).all()


def test_tiled_preview_repeats_tile(pattern_service):
    tile = make_noise(100, 100)
    preview = rgba(pattern_service.render_tiled_preview(tile, 100, output_size=200))
    # scale 100 on 200 px: tile edge 120, second column starts at x=120
    np.testing.assert_array_equal(preview[0:10, 0:10], preview[0:10, 120:130])


def test_tiled_preview_degenerate_scale_is_blank(pattern_service, noise):
    preview = rgba(pattern_service.render_tiled_preview(noise, -50, output_size=64))
    assert (preview == 0).all()


@pytest.mark.parametrize("scale", range(1, 101))
def test_tiled_preview_has_no_gaps(pattern_service, scale):
    tile = Image.new("RGBA", (32, 32), (255, 0, 0, 255))
    alpha = rgba(pattern_service.render_tiled_preview(tile, scale, 512))[..., 3]
    assert (alpha == 0).sum() == 0


@pytest.mark.parametrize("scale", [2, 7, 50, 79])
def test_tiled_preview_tile_starts_at_rounded_offset(pattern_service, scale):
    # левая половина красная, правая зелёная: граница тайлов видна как переход зелёный -> красный
    tile = Image.new("RGBA", (128, 128), (0, 255, 0, 255))
    tile.paste((255, 0, 0, 255), (0, 0, 64, 128))
    grid = pattern_service.preview_grid(scale, 512)
    row = rgba(pattern_service.render_tiled_preview(tile, scale, 512))[5]
    for k in range(1, grid.tiles_x):
        start = int(round(k * grid.tile_size))
        if start >= 512:
            break
        assert tuple(row[start]) == (255, 0, 0, 255)
        assert tuple(row[start - 1]) == (0, 255, 0, 255)


# ---------- Сохранение ----------
def test_download_texture_writes_file(pattern_service, image_service, tmp_path):
    url = image_service.encode_data_url(Image.new("RGBA", (8, 8), (0, 128, 255, 255)))
    path = pattern_service.download_texture(url, "tile.png", tmp_path)
    assert path == tmp_path / "tile.png"
    with Image.open(path) as img:
        assert img.size == (8, 8)
        assert img.convert("RGBA").getpixel((0, 0)) == (0, 128, 255, 255)


def test_download_texture_default_name_and_dir(pattern_service, image_service, tmp_path):
    url = image_service.encode_data_url(Image.new("RGBA", (4, 4)))
    path = pattern_service.download_texture(url)
    assert path == tmp_path / "out" / "seamless-texture.png"
    assert path.exists()


def test_download_empty_pattern_fails(pattern_service):
    with pytest.raises(LoadError):
        pattern_service.download_texture("")


def test_export_variations_skips_placeholder(pattern_service, noise, tmp_path):
    variations = pattern_service.generate_all_variations(noise)
    saved = pattern_service.export_variations(variations, tmp_path / "export", scale=50, preview_size=64)
    names = sorted(p.name for p in saved)
    assert len(saved) == 8
    assert "offset_blend.png" in names
    assert "edge_average_preview.png" in names
    assert not any(AI_ENHANCED_ID in name for name in names)
