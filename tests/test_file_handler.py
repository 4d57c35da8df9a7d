"""Tests for file_handler module: destination resolution, encoding-aware read/write."""

import pytest

from docs_mirror.file_handler import (
    read_file_with_encoding,
    resolve_destination,
    write_file,
)

# =============================================================================
# resolve_destination
# =============================================================================


class TestResolveDestination:
    """Tests for resolve_destination(base_dir, dest)."""

    def test_nested_destination(self, tmp_path):
        result = resolve_destination(tmp_path, "get-started/index.md")
        assert result == (tmp_path / "get-started" / "index.md").resolve()

    def test_traversal_rejected(self, tmp_path):
        with pytest.raises(ValueError, match=r"\.\."):
            resolve_destination(tmp_path, "../escape.md")

    def test_absolute_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="relative"):
            resolve_destination(tmp_path, "/etc/passwd")

    def test_symlink_escape_rejected(self, tmp_path):
        """A symlinked directory pointing outside the base is refused."""
        outside = tmp_path / "outside"
        outside.mkdir()
        base = tmp_path / "base"
        base.mkdir()
        (base / "link").symlink_to(outside)

        with pytest.raises(ValueError, match="outside output directory"):
            resolve_destination(base, "link/page.md")


# =============================================================================
# read_file_with_encoding
# =============================================================================


class TestReadFileWithEncoding:
    """Tests for read_file_with_encoding(path)."""

    def test_utf8_file(self, tmp_path):
        """UTF-8 file returns content and 'utf-8' encoding."""
        f = tmp_path / "index.md"
        f.write_text("# Hello, world!", encoding="utf-8")
        content, encoding = read_file_with_encoding(f)
        assert content == "# Hello, world!"
        assert encoding == "utf-8"

    def test_empty_file(self, tmp_path):
        f = tmp_path / "empty.md"
        f.write_bytes(b"")
        assert read_file_with_encoding(f) == ("", "utf-8")

    def test_non_utf8_file(self, tmp_path):
        """Latin-1 documents are decoded instead of failing."""
        f = tmp_path / "latin1.md"
        text = "Café résumé naïve üöä"
        f.write_bytes(text.encode("latin-1"))
        content, encoding = read_file_with_encoding(f)
        assert "Caf" in content
        assert isinstance(encoding, str)


# =============================================================================
# write_file
# =============================================================================


class TestWriteFile:
    """Tests for write_file(path, content, encoding)."""

    def test_write_basic(self, tmp_path):
        f = tmp_path / "overview.md"
        count = write_file(f, "# Overview\n")
        assert f.read_text(encoding="utf-8") == "# Overview\n"
        assert count == len("# Overview\n".encode("utf-8"))

    def test_creates_parent_directories(self, tmp_path):
        f = tmp_path / "resources" / "get-started" / "index.md"
        write_file(f, "nested")
        assert f.read_text(encoding="utf-8") == "nested"

    def test_newlines_written_verbatim(self, tmp_path):
        f = tmp_path / "crlf.md"
        write_file(f, "a\r\nb\n")
        assert f.read_bytes() == b"a\r\nb\n"
