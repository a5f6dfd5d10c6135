from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from conftest import make_noise, rgba
from pattern_studio.errors import PatternError


# ---------- Кроп ----------
def test_crop_region_is_deterministic(tiling):
    assert tiling.crop_region(300, 200) == tiling.crop_region(300, 200)


@pytest.mark.parametrize(
    "width,height,expected",
    [
        (300, 200, (200, 50, 0)),
        (200, 300, (200, 0, 50)),
        (128, 128, (128, 0, 0)),
        (101, 100, (100, 0, 0)),
    ],
)
def test_crop_region_is_centered(tiling, width, height, expected):
    region = tiling.crop_region(width, height)
    assert (region.size, region.origin_x, region.origin_y) == expected


def test_crop_region_rejects_zero_size(tiling):
    with pytest.raises(PatternError):
        tiling.crop_region(0, 10)


def test_crop_square_takes_center(tiling):
    src = make_noise(90, 60)
    out = tiling.crop_square(src)
    assert out.size == (60, 60)
    np.testing.assert_array_equal(rgba(out), rgba(src)[:, 15:75])


# ---------- Solid colour stays solid ----------
@pytest.mark.parametrize("method", ["offset_blend", "mirror_symmetry", "overlap_blend", "edge_average"])
def test_solid_red_stays_red(tiling, solid_red, method):
    out = getattr(tiling, method)(solid_red)
    assert out.size == (256, 256)
    arr = rgba(out)
    expected = np.array([255, 0, 0, 255])
    assert np.abs(arr - expected).max() <= 1


@pytest.mark.parametrize("method", ["offset_blend", "mirror_symmetry", "overlap_blend", "edge_average"])
def test_algorithms_do_not_mutate_input(tiling, noise, method):
    before = rgba(noise).copy()
    getattr(tiling, method)(noise)
    np.testing.assert_array_equal(rgba(noise), before)


@pytest.mark.parametrize("method", ["offset_blend", "mirror_symmetry", "overlap_blend", "edge_average"])
@pytest.mark.parametrize("size", [1, 2, 5, 7])
def test_tiny_images_do_not_fail(tiling, method, size):
    out = getattr(tiling, method)(make_noise(size, size))
    assert out.size == (size, size)


@pytest.mark.parametrize("method", ["offset_blend", "mirror_symmetry", "overlap_blend", "edge_average"])
def test_non_square_input_gives_square_tile(tiling, method):
    out = getattr(tiling, method)(make_noise(80, 50))
    assert out.size == (50, 50)
    assert out.mode == "RGBA"


# ---------- Offset & Blend ----------
def test_offset_blend_alpha_is_opaque(tiling):
    src = make_noise(64, 64, alpha=40)
    arr = rgba(tiling.offset_blend(src))
    assert (arr[..., 3] == 255).all()


def test_offset_blend_swaps_quadrants_outside_band(tiling, noise):
    src = rgba(noise)
    out = rgba(tiling.offset_blend(noise))
    # size 64: band is rows/cols 23..40, corners are untouched by blending
    np.testing.assert_array_equal(out[0, 0, :3], src[32, 32, :3])
    np.testing.assert_array_equal(out[0, 63, :3], src[32, 31, :3])
    np.testing.assert_array_equal(out[63, 0, :3], src[31, 32, :3])
    np.testing.assert_array_equal(out[63, 63, :3], src[31, 31, :3])


def test_offset_blend_vertical_pass_reads_horizontal_result(tiling):
    src = make_noise(20, 20, seed=11)
    rolled = np.roll(rgba(src), shift=(-10, -10), axis=(0, 1)).astype(np.float64)
    # band width 3, row/col 10 is the seam centre: blend factor 1, weight 0.5
    h_center = np.floor(rolled[10, 10, :3] * 0.5 + rolled[0, 10, :3] * 0.5)
    h_edge = np.floor(rolled[10, 0, :3] * 0.5 + rolled[0, 0, :3] * 0.5)
    expected = np.floor(h_center * 0.5 + h_edge * 0.5)

    out = rgba(tiling.offset_blend(src))
    np.testing.assert_array_equal(out[10, 10, :3], expected)


def test_offset_blend_band_weight_falls_off(tiling):
    src = make_noise(20, 20, seed=3)
    rolled = np.roll(rgba(src), shift=(-10, -10), axis=(0, 1)).astype(np.float64)
    # row 8, column 0: only the horizontal pass applies, factor = 1 - 2/3
    w = (1 - 2 / 3) * 0.5
    expected = np.floor(rolled[8, 0, :3] * (1 - w) + rolled[18, 0, :3] * w)
    out = rgba(tiling.offset_blend(src))
    np.testing.assert_array_equal(out[8, 0, :3], expected)


# ---------- Mirror ----------
def test_mirror_quadrants_are_reflections(tiling):
    out = rgba(tiling.mirror_symmetry(make_noise(64, 64, seed=5)))
    tl = out[:32, :32]
    np.testing.assert_array_equal(out[:32, 32:], tl[:, ::-1])
    np.testing.assert_array_equal(out[32:, :32], tl[::-1, :])
    np.testing.assert_array_equal(out[32:, 32:], tl[::-1, ::-1])


def test_mirror_uses_only_top_left_quadrant(tiling):
    src = make_noise(64, 64, seed=5)
    arr = rgba(src)
    arr[32:, :] = 0
    arr[:, 32:] = 0
    modified = Image.fromarray(arr.astype(np.uint8))
    np.testing.assert_array_equal(rgba(tiling.mirror_symmetry(src)), rgba(tiling.mirror_symmetry(modified)))


def test_mirror_edges_match(tiling, noise):
    out = rgba(tiling.mirror_symmetry(noise))
    np.testing.assert_array_equal(out[:, 0], out[:, -1])
    np.testing.assert_array_equal(out[0, :], out[-1, :])


# ---------- Overlap blend ----------
def test_overlap_blend_keeps_interior(tiling, noise):
    src = rgba(noise)
    out = rgba(tiling.overlap_blend(noise))
    patch, overlap = int(64 * 0.3), int(64 * 0.15)
    np.testing.assert_array_equal(out[: 64 - overlap, : 64 - patch], src[: 64 - overlap, : 64 - patch])


def test_overlap_blend_softens_right_edge(tiling, noise):
    src = rgba(noise)
    out = rgba(tiling.overlap_blend(noise))
    assert not np.array_equal(out[:, -1], src[:, -1])
    # right edge is half-way to the left strip
    before_gap = np.abs(src[:, -1, :3] - src[:, 0, :3]).mean()
    after_gap = np.abs(out[:, -1, :3] - out[:, 0, :3]).mean()
    assert after_gap < before_gap


def test_overlap_blend_gradient_darkens_midtones_only_above_half(tiling):
    grey = Image.new("RGBA", (100, 100), (64, 64, 64, 255))
    light = Image.new("RGBA", (100, 100), (200, 200, 200, 255))
    dark_out = rgba(tiling.overlap_blend(grey))
    light_out = rgba(tiling.overlap_blend(light))
    # overlay with black keeps backdrop <= 0.5 at zero: darkens it
    assert dark_out[50, 85, 0] < 64
    assert light_out[50, 85, 0] < 200
    assert (dark_out[:, :70] == [64, 64, 64, 255]).all()


# ---------- Edge average ----------
def test_edge_average_opposite_edges_converge(tiling, noise):
    out = rgba(tiling.edge_average(noise))
    np.testing.assert_array_equal(out[:, 0, :3], out[:, -1, :3])
    np.testing.assert_array_equal(out[0, :, :3], out[-1, :, :3])


def test_edge_average_leaves_alpha_untouched(tiling):
    src = make_noise(40, 40, alpha=128)
    out = rgba(tiling.edge_average(src))
    assert (out[..., 3] == 128).all()


def test_edge_average_leaves_center_untouched(tiling, noise):
    src = rgba(noise)
    out = rgba(tiling.edge_average(noise))
    zone = int(64 * 0.15)
    np.testing.assert_array_equal(out[zone:-zone, zone:-zone], src[zone:-zone, zone:-zone])


def test_edge_average_top_bottom_pass_reads_left_right_result(tiling):
    src = make_noise(20, 20, seed=9)
    arr = rgba(src).astype(np.float64)
    # zone 3; corner (0, 0) is averaged left/right first, then top/bottom
    lr_top = np.floor((arr[0, 0, :3] + arr[0, 19, :3]) / 2)
    lr_bottom = np.floor((arr[19, 0, :3] + arr[19, 19, :3]) / 2)
    expected = np.floor((lr_top + lr_bottom) / 2)
    out = rgba(tiling.edge_average(src))
    np.testing.assert_array_equal(out[0, 0, :3], expected)
