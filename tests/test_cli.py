"""Tests for the hybridbuffer CLI."""

import gzip
import zlib

import pytest
from typer.testing import CliRunner

from hybridbuffer.cli import app


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def runner():
    """Create CLI runner."""
    return CliRunner()


@pytest.fixture
def sample_file(tmp_path):
    """Sample text file."""
    path = tmp_path / "sample.txt"
    path.write_bytes(b"line of sample text\n" * 200)
    return path


# =============================================================================
# Tests
# =============================================================================


class TestCompressCommand:
    """Tests for the compress command."""

    def test_default_gzip(self, runner, sample_file):
        """Test compressing with defaults."""
        result = runner.invoke(app, ["compress", str(sample_file)])

        assert result.exit_code == 0
        output = sample_file.with_name("sample.txt.gz")
        assert gzip.decompress(output.read_bytes()) == sample_file.read_bytes()
        assert "level 6" in result.stdout

    def test_zlib_with_level(self, runner, sample_file, tmp_path):
        """Test algorithm and level options."""
        output = tmp_path / "out.zz"
        result = runner.invoke(
            app, ["compress", str(sample_file), "-a", "zlib", "-l", "9", "-o", str(output)]
        )

        assert result.exit_code == 0
        assert zlib.decompress(output.read_bytes()) == sample_file.read_bytes()
        assert "level 9" in result.stdout

    def test_invalid_level_uses_default(self, runner, sample_file):
        """Test an out-of-range level falls back to 6."""
        result = runner.invoke(app, ["compress", str(sample_file), "-l", "42"])

        assert result.exit_code == 0
        assert "level 6" in result.stdout

    def test_missing_file(self, runner, tmp_path):
        """Test a missing input file."""
        result = runner.invoke(app, ["compress", str(tmp_path / "missing.txt")])
        assert result.exit_code == 1

    def test_refuses_overwrite(self, runner, sample_file):
        """Test existing outputs are kept without --force."""
        existing = sample_file.with_name("sample.txt.gz")
        existing.write_bytes(b"keep me")

        result = runner.invoke(app, ["compress", str(sample_file)])

        assert result.exit_code == 1
        assert existing.read_bytes() == b"keep me"


class TestDecompressCommand:
    """Tests for the decompress command."""

    def test_round_trip(self, runner, sample_file, tmp_path):
        """Test compress then decompress restores the file."""
        runner.invoke(app, ["compress", str(sample_file), "-a", "zlib"])
        compressed = sample_file.with_name("sample.txt.zz")
        restored = tmp_path / "restored.txt"

        result = runner.invoke(app, ["decompress", str(compressed), "-o", str(restored)])

        assert result.exit_code == 0
        assert restored.read_bytes() == sample_file.read_bytes()

    def test_strips_extension(self, runner, tmp_path):
        """Test the default output drops the compression extension."""
        compressed = tmp_path / "data.bin.gz"
        compressed.write_bytes(gzip.compress(b"payload"))

        result = runner.invoke(app, ["decompress", str(compressed)])

        assert result.exit_code == 0
        assert (tmp_path / "data.bin").read_bytes() == b"payload"

    def test_corrupt_input(self, runner, tmp_path):
        """Test a file that is not compressed."""
        bogus = tmp_path / "bogus.gz"
        bogus.write_bytes(b"definitely not gzip data")

        result = runner.invoke(app, ["decompress", str(bogus)])

        assert result.exit_code == 1
        assert not (tmp_path / "bogus").exists()


class TestAlgorithmsCommand:
    """Tests for the algorithms command."""

    def test_lists_algorithms(self, runner):
        """Test supported algorithms are listed."""
        result = runner.invoke(app, ["algorithms"])

        assert result.exit_code == 0
        assert "gzip" in result.stdout
        assert "zlib" in result.stdout
