"""Tests for checksum utilities."""

import hashlib

import pytest

from melodex.common.checksums import SHA256_CHUNK_SIZE, compute_sha256_hex


class TestComputeSHA256Hex:
    """Tests for compute_sha256_hex function."""

    def test_matches_hashlib(self, tmp_path):
        """Test that the digest equals hashlib's digest of the whole file."""
        track = tmp_path / "track.mp3"
        track.write_bytes(b"ID3" + b"\x00" * 1000)

        assert compute_sha256_hex(track) == hashlib.sha256(track.read_bytes()).hexdigest()

    def test_same_content_same_hash(self, tmp_path):
        """Test that copies of a file share one content hash."""
        file1 = tmp_path / "a.flac"
        file2 = tmp_path / "b.flac"
        file1.write_bytes(b"fLaC same bytes")
        file2.write_bytes(b"fLaC same bytes")

        assert compute_sha256_hex(file1) == compute_sha256_hex(file2)

    def test_different_content_different_hash(self, tmp_path):
        """Test that different files have different hashes."""
        file1 = tmp_path / "a.mp3"
        file2 = tmp_path / "b.mp3"
        file1.write_bytes(b"Content A")
        file2.write_bytes(b"Content B")

        assert compute_sha256_hex(file1) != compute_sha256_hex(file2)

    def test_file_larger_than_chunk(self, tmp_path):
        """Test hashing across chunk boundaries."""
        large = tmp_path / "large.bin"
        data = b"X" * (SHA256_CHUNK_SIZE * 2 + 17)
        large.write_bytes(data)

        result = compute_sha256_hex(large)

        assert result == hashlib.sha256(data).hexdigest()
        assert len(result) == 64

    def test_nonexistent_file(self, tmp_path):
        """Test that a missing file raises OSError."""
        with pytest.raises(OSError):
            compute_sha256_hex(tmp_path / "missing.mp3")
