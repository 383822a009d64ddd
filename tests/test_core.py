"""
Test script for core watermark removal functionality.

Run with: python -m pytest tests/test_core.py -v
Or simply: python tests/test_core.py
"""

import sys
import tempfile
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
import pytest
from PIL import Image

from eraser.core import (
    AssetLoadError, ForceMode, LogoOverlay, MaskSet, OpacityMask, PixelBuffer,
    ProcessingConfig, RegionOutOfBounds, apply_overlay, fit_logo_size, load_masks,
    mask_from_image, reconstruct, remove_watermark, resolve, resolve_mode
)


def create_test_image(width: int = 500, height: int = 500, value: int = 100) -> PixelBuffer:
    """Create a flat opaque gray image."""
    arr = np.full((height, width, 4), value, dtype=np.uint8)
    arr[:, :, 3] = 255
    return PixelBuffer(width, height, arr)


def create_constant_mask(size: int, alpha: float) -> OpacityMask:
    return OpacityMask(size, size, np.full(size * size, alpha, dtype=np.float32))


def create_mask_set(alpha: float = 0.5) -> MaskSet:
    return MaskSet(small=create_constant_mask(48, alpha), large=create_constant_mask(96, alpha))


def blend_white(buffer: PixelBuffer, mask: OpacityMask, origin) -> PixelBuffer:
    """Apply a white watermark the way the source service does."""
    x, y = origin
    out = buffer.copy()
    region = out.rgba[y:y + mask.height, x:x + mask.width, :3].astype(np.float32)
    alpha = mask.grid()[:, :, np.newaxis]
    blended = region * (1.0 - alpha) + 255.0 * alpha
    out.rgba[y:y + mask.height, x:x + mask.width, :3] = np.rint(blended).astype(np.uint8)
    return out


# =============================================================================
# Mask Store
# =============================================================================

def test_mask_values_match_brightest_channel():
    """Each alpha equals max(R, G, B) / 255 of the template pixel."""
    rng = np.random.default_rng(7)
    template = rng.integers(0, 256, size=(48, 48, 3), dtype=np.uint8)

    mask = mask_from_image(Image.fromarray(template))

    expected = template.max(axis=2).astype(np.float32).reshape(-1) / 255.0
    assert mask.width == 48 and mask.height == 48
    assert np.allclose(mask.alphas, expected)
    assert mask.alphas.min() >= 0.0 and mask.alphas.max() <= 1.0


def test_mask_is_read_only():
    mask = create_constant_mask(4, 0.25)
    with pytest.raises(ValueError):
        mask.alphas[0] = 1.0


def test_load_masks_from_files():
    """Both templates load from PNG files into the shared MaskSet."""
    with tempfile.TemporaryDirectory() as tmp:
        small_path = Path(tmp) / "mask_48.png"
        large_path = Path(tmp) / "mask_96.png"
        Image.new("RGBA", (48, 48), (255, 255, 255, 255)).save(small_path)
        Image.new("RGBA", (96, 96), (0, 0, 102, 255)).save(large_path)

        masks = load_masks(small_path, large_path)

    assert masks.small.width == 48
    assert masks.large.width == 96
    assert masks.small.alpha_at(10, 10) == pytest.approx(1.0)
    assert masks.large.alpha_at(0, 95) == pytest.approx(0.4)


def test_load_masks_missing_template_is_asset_error():
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(AssetLoadError):
            load_masks(Path(tmp) / "missing_48.png", Path(tmp) / "missing_96.png")


def test_load_masks_rejects_undecodable_template():
    with tempfile.TemporaryDirectory() as tmp:
        bogus = Path(tmp) / "mask_48.png"
        bogus.write_bytes(b"not a png")
        with pytest.raises(AssetLoadError):
            load_masks(bogus, bogus)


def test_load_masks_rejects_wrong_size():
    with tempfile.TemporaryDirectory() as tmp:
        small_path = Path(tmp) / "mask_48.png"
        Image.new("RGB", (50, 50), (255, 255, 255)).save(small_path)
        with pytest.raises(AssetLoadError, match="48x48"):
            load_masks(small_path, small_path)


# =============================================================================
# Placement Resolver
# =============================================================================

@pytest.mark.parametrize("width,height,expected", [
    (1025, 1025, ForceMode.LARGE),
    (2000, 1024, ForceMode.SMALL),
    (1024, 2000, ForceMode.SMALL),
    (800, 600, ForceMode.SMALL),
])
def test_auto_mode_uses_both_dimensions(width, height, expected):
    assert resolve_mode(width, height, ForceMode.AUTO) == expected


def test_forced_mode_overrides_dimensions():
    assert resolve(500, 500, ForceMode.LARGE).mode == ForceMode.LARGE
    assert resolve(3000, 3000, ForceMode.SMALL).mode == ForceMode.SMALL
    assert resolve_mode(3000, 3000, "small") == ForceMode.SMALL


def test_anchor_examples():
    large = resolve(2000, 2000, ForceMode.AUTO)
    assert large.mode == ForceMode.LARGE
    assert (large.spec.target_size, large.spec.margin) == (96, 64)
    assert large.origin == (1840, 1840)

    small = resolve(500, 500, ForceMode.AUTO)
    assert small.mode == ForceMode.SMALL
    assert (small.spec.target_size, small.spec.margin) == (48, 32)
    assert small.origin == (420, 420)


def test_region_out_of_bounds():
    with pytest.raises(RegionOutOfBounds):
        resolve(60, 60, ForceMode.AUTO)
    with pytest.raises(RegionOutOfBounds):
        resolve(500, 100, ForceMode.LARGE)


# =============================================================================
# Unblend Kernel
# =============================================================================

def test_zero_mask_is_identity():
    rng = np.random.default_rng(3)
    buffer = PixelBuffer(100, 100, rng.integers(0, 256, size=(100, 100, 4), dtype=np.uint8))

    result = reconstruct(buffer, create_constant_mask(48, 0.0), (20, 20), gain=1.0)

    assert np.array_equal(result.rgba, buffer.rgba)
    assert result is not buffer


def test_reconstruct_inverts_white_blend():
    """A white overlay at known opacity is removed to within rounding."""
    original = create_test_image(500, 500, value=100)
    mask = create_constant_mask(48, 0.5)
    watermarked = blend_white(original, mask, (420, 420))
    assert watermarked.rgba[440, 440, 0] == 178

    result = reconstruct(watermarked, mask, (420, 420))

    region = result.rgba[420:468, 420:468, :3].astype(int)
    assert np.all(np.abs(region - 100) <= 1)


def test_reconstruct_touches_only_region_and_color():
    rng = np.random.default_rng(11)
    buffer = PixelBuffer(120, 120, rng.integers(0, 256, size=(120, 120, 4), dtype=np.uint8))
    mask = create_constant_mask(48, 0.3)

    result = reconstruct(buffer, mask, (40, 40))

    # Image alpha channel untouched everywhere
    assert np.array_equal(result.rgba[:, :, 3], buffer.rgba[:, :, 3])
    # Outside the rectangle untouched
    assert np.array_equal(result.rgba[:40], buffer.rgba[:40])
    assert np.array_equal(result.rgba[:, 88:], buffer.rgba[:, 88:])


def test_fully_opaque_pixels_keep_observed_value():
    buffer = create_test_image(100, 100, value=123)

    result = reconstruct(buffer, create_constant_mask(48, 1.0), (10, 10))
    assert np.array_equal(result.rgba, buffer.rgba)

    # 0.6 * 2.0 clamps to 1.0 as well
    result = reconstruct(buffer, create_constant_mask(48, 0.6), (10, 10), gain=2.0)
    assert np.array_equal(result.rgba, buffer.rgba)


def test_reconstruct_clamps_to_byte_range():
    dark = create_test_image(100, 100, value=10)
    result = reconstruct(dark, create_constant_mask(48, 0.999), (10, 10))
    assert result.rgba[20, 20, 0] == 0

    bright = create_test_image(100, 100, value=255)
    result = reconstruct(bright, create_constant_mask(48, 0.0001), (10, 10))
    assert result.rgba[20, 20, 0] == 255


def test_higher_gain_removes_more():
    """Raising the gain moves the pixel monotonically toward full removal."""
    buffer = create_test_image(100, 100, value=200)
    mask = create_constant_mask(48, 0.3)

    values = [
        int(reconstruct(buffer, mask, (10, 10), gain=gain).rgba[30, 30, 0])
        for gain in (1.0, 1.5, 2.0, 3.0)
    ]

    assert values == sorted(values, reverse=True)
    assert len(set(values)) == len(values)


def test_reconstruct_rejects_region_outside_image():
    buffer = create_test_image(50, 50)
    with pytest.raises(RegionOutOfBounds):
        reconstruct(buffer, create_constant_mask(48, 0.5), (10, 10))


def test_remove_watermark_picks_mask_from_size():
    masks = MaskSet(small=create_constant_mask(48, 0.5), large=create_constant_mask(96, 0.25))
    original = create_test_image(1100, 1100, value=60)
    watermarked = blend_white(original, masks.large, (940, 940))

    result = remove_watermark(watermarked, masks, ProcessingConfig())

    assert abs(int(result.rgba[1000, 1000, 1]) - 60) <= 1
    # Rows above the box stay as they were
    assert np.array_equal(result.rgba[:940], watermarked.rgba[:940])


def test_remove_watermark_passes_small_images_through():
    tiny = create_test_image(64, 64, value=42)
    result = remove_watermark(tiny, create_mask_set(), ProcessingConfig())
    assert np.array_equal(result.rgba, tiny.rgba)


# =============================================================================
# Compositor
# =============================================================================

def test_fit_logo_size_keeps_aspect_ratio():
    assert fit_logo_size((200, 100), 48) == (48, 24)
    assert fit_logo_size((200, 100), 48, scale=0.5) == (24, 12)
    assert fit_logo_size((10, 40), 96, scale=2.0) == (48, 192)


def test_no_overlay_is_noop():
    buffer = create_test_image()
    assert apply_overlay(buffer, None) is buffer
    assert apply_overlay(buffer, LogoOverlay()) is buffer


def test_logo_lands_on_watermark_anchor():
    """An opaque square logo covers exactly the watermark box."""
    buffer = create_test_image(500, 500, value=0)
    logo = Image.new("RGBA", (48, 48), (255, 0, 0, 255))

    result = apply_overlay(buffer, LogoOverlay(image=logo, opacity=1.0), ForceMode.AUTO)

    placement = resolve(500, 500, ForceMode.AUTO)
    x, y = placement.origin
    assert tuple(result.rgba[y, x]) == (255, 0, 0, 255)
    assert tuple(result.rgba[y + 47, x + 47]) == (255, 0, 0, 255)
    assert tuple(result.rgba[y - 1, x - 1]) == (0, 0, 0, 255)
    assert tuple(result.rgba[y + 48, x + 48]) == (0, 0, 0, 255)


def test_logo_opacity_blends():
    buffer = create_test_image(500, 500, value=0)
    logo = Image.new("RGBA", (48, 48), (255, 255, 255, 255))

    result = apply_overlay(buffer, LogoOverlay(image=logo, opacity=0.5), ForceMode.SMALL)

    assert abs(int(result.rgba[440, 440, 0]) - 128) <= 1
    assert result.rgba[440, 440, 3] == 255


def test_logo_skipped_when_out_of_bounds():
    buffer = create_test_image(60, 60, value=0)
    logo = Image.new("RGBA", (48, 48), (255, 255, 255, 255))
    result = apply_overlay(buffer, LogoOverlay(image=logo), ForceMode.AUTO)
    assert np.array_equal(result.rgba, buffer.rgba)


# =============================================================================
# Models
# =============================================================================

def test_processing_config_validates_gain():
    with pytest.raises(ValueError):
        ProcessingConfig(alpha_gain=0.5)
    with pytest.raises(ValueError):
        ProcessingConfig(alpha_gain=3.5)

    config = ProcessingConfig().with_changes(force_mode="large", alpha_gain=2.5)
    assert config.force_mode == ForceMode.LARGE
    assert config.alpha_gain == 2.5


def test_logo_overlay_validates_ranges():
    with pytest.raises(ValueError):
        LogoOverlay(opacity=1.5)
    with pytest.raises(ValueError):
        LogoOverlay(scale=0.05)


def test_pixel_buffer_from_bytes_checks_length():
    with pytest.raises(ValueError):
        PixelBuffer.from_bytes(2, 2, bytes(15))

    buffer = PixelBuffer.from_bytes(2, 1, bytes([1, 2, 3, 4, 5, 6, 7, 8]))
    assert tuple(buffer.rgba[0, 1]) == (5, 6, 7, 8)
    assert buffer.to_bytes() == bytes([1, 2, 3, 4, 5, 6, 7, 8])


def main():
    """Run all tests."""
    return pytest.main([__file__, "-v"])


if __name__ == "__main__":
    sys.exit(main())
