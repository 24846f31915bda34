"""Tests for cover persistence and existence checks."""

import os

import pytest
from PIL import Image

from melodex.library_scanner.covers import (
    cover_exists,
    cover_pair_exists,
    is_image_buffer,
    store_cover,
    write_variants,
)
from melodex.library_scanner.errors import CoverStoreError


class TestCoverExists:
    """Test the existence checker."""

    def test_existing_file(self, tmp_path):
        """Test that a readable local file exists."""
        cover = tmp_path / "cover.jpg"
        cover.write_bytes(b"jpeg")
        assert cover_exists(str(cover)) is True

    def test_missing_file(self, tmp_path):
        """Test that a missing file does not exist."""
        assert cover_exists(str(tmp_path / "missing.jpg")) is False

    def test_none_and_empty(self):
        """Test that absent paths never exist."""
        assert cover_exists(None) is False
        assert cover_exists("") is False

    def test_directory_is_not_a_cover(self, tmp_path):
        """Test that a directory does not count as a cover."""
        assert cover_exists(str(tmp_path)) is False

    @pytest.mark.parametrize("url", ["http://example.com/a.jpg", "https://example.com/a.jpg"])
    def test_remote_paths_are_not_local(self, url):
        """Test that remote covers are never considered available."""
        assert cover_exists(url) is False

    def test_pair_requires_both(self, tmp_path):
        """Test that a pair is valid only when both variants exist."""
        high = tmp_path / "h.jpg"
        low = tmp_path / "l.jpg"
        high.write_bytes(b"x")

        assert cover_pair_exists(str(high), str(low)) is False
        low.write_bytes(b"x")
        assert cover_pair_exists(str(high), str(low)) is True
        assert cover_pair_exists(str(high), None) is False


class TestStoreCover:
    """Test the cover store."""

    def test_dual_writes_both_variants(self, tmp_path, image_bytes):
        """Test that dual mode writes high and low JPEGs named by key."""
        paths = store_cover(image_bytes, str(tmp_path / "thumbs"), "track-1", dual=True,
                            high_resolution=64, low_resolution=16)

        assert paths is not None
        assert paths.high == str(tmp_path / "thumbs" / "track-1-high.jpg")
        assert paths.low == str(tmp_path / "thumbs" / "track-1-low.jpg")
        with Image.open(paths.high) as high, Image.open(paths.low) as low:
            assert high.format == "JPEG"
            assert max(high.size) == 64
            assert max(low.size) == 16

    def test_single_writes_high_only(self, tmp_path, image_bytes):
        """Test that single mode writes only the high variant."""
        paths = store_cover(image_bytes, str(tmp_path), "artist-1", dual=False)

        assert paths is not None
        assert paths.low is None
        assert os.path.isfile(paths.high)
        assert not (tmp_path / "artist-1-low.jpg").exists()

    def test_small_image_is_not_upscaled(self, tmp_path, image_bytes):
        """Test that thumbnails never exceed the source size."""
        paths = store_cover(image_bytes, str(tmp_path), "k", high_resolution=800)

        with Image.open(paths.high) as high:
            assert high.size == (120, 90)

    def test_rejects_non_image_buffer(self, tmp_path):
        """Test that garbage bytes yield None instead of raising."""
        assert store_cover(b"not an image at all", str(tmp_path), "k") is None
        assert list(tmp_path.iterdir()) == []

    def test_empty_buffer(self, tmp_path):
        """Test that an empty buffer yields None."""
        assert store_cover(b"", str(tmp_path), "k") is None

    def test_truncated_image(self, tmp_path, image_bytes):
        """Test that a corrupted image yields None."""
        assert store_cover(image_bytes[:40], str(tmp_path), "k") is None

    def test_is_image_buffer(self, image_bytes):
        """Test magic-byte sniffing."""
        assert is_image_buffer(image_bytes) is True
        assert is_image_buffer(b"ID3\x03\x00") is False


class TestWriteVariants:
    """Test the low-level variant writer."""

    def test_undecodable_buffer_raises(self, tmp_path):
        """Test that a buffer Pillow cannot decode raises CoverStoreError."""
        target = tmp_path / "k-high.jpg"

        with pytest.raises(CoverStoreError) as exc_info:
            write_variants(b"\x89PNG\r\n\x1a\n truncated", [(target, 64)])

        assert exc_info.value.context["path"] == str(target)
        assert not target.exists()

    def test_writes_each_variant(self, tmp_path, image_bytes):
        """Test that every requested size is written."""
        variants = [(tmp_path / "a.jpg", 64), (tmp_path / "b.jpg", 16)]

        write_variants(image_bytes, variants)

        with Image.open(tmp_path / "b.jpg") as low:
            assert max(low.size) == 16
