"""Tests for the file-system document source."""

from pathlib import Path

import docx

from docqa.services.parser.main_parser import FileSystemDocumentSource


def _write(path: Path, content) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


class TestFileSystemDocumentSource:
    def test_loads_supported_files_recursively_in_order(self, tmp_path: Path) -> None:
        _write(tmp_path / "b.txt", "second")
        _write(tmp_path / "a.md", "# first")
        _write(tmp_path / "nested" / "deeper" / "c.txt", "third")

        result = FileSystemDocumentSource().load(tmp_path)

        assert [d.source for d in result.documents] == ["a.md", "b.txt", "nested/deeper/c.txt"]
        assert result.documents[2].text == "third"
        assert result.documents[2].metadata["file_type"] == "txt"
        assert result.errors == []

    def test_skips_unsupported_hidden_and_empty_files(self, tmp_path: Path) -> None:
        _write(tmp_path / "image.xyz", "binary-ish")
        _write(tmp_path / ".hidden.txt", "secret")
        _write(tmp_path / ".git" / "config.txt", "ignored")
        _write(tmp_path / "empty.txt", "   \n")
        _write(tmp_path / "kept.txt", "kept")

        result = FileSystemDocumentSource().load(tmp_path)

        assert [d.source for d in result.documents] == ["kept.txt"]
        assert result.errors == []

    def test_unreadable_document_is_reported_and_others_still_load(self, tmp_path: Path) -> None:
        _write(tmp_path / "broken.txt", b"\xff\xfe\xfa not utf-8 \x80")
        _write(tmp_path / "broken.pdf", b"this is not a pdf")
        _write(tmp_path / "good.txt", "The sky is blue.")

        result = FileSystemDocumentSource().load(tmp_path)

        assert [d.source for d in result.documents] == ["good.txt"]
        assert sorted(e.source for e in result.errors) == ["broken.pdf", "broken.txt"]

    def test_reads_docx_paragraphs(self, tmp_path: Path) -> None:
        document = docx.Document()
        document.add_paragraph("The ocean is deep.")
        document.add_paragraph("")
        document.add_paragraph("The sun shines bright.")
        document.save(str(tmp_path / "notes.docx"))

        result = FileSystemDocumentSource().load(tmp_path)

        assert len(result.documents) == 1
        assert result.documents[0].text == "The ocean is deep.\nThe sun shines bright."
        assert result.documents[0].metadata["file_type"] == "docx"

    def test_extension_filter(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.txt", "text")
        _write(tmp_path / "b.md", "markdown")

        result = FileSystemDocumentSource(extensions=[".MD"]).load(tmp_path)

        assert [d.source for d in result.documents] == ["b.md"]
