"""Tests for loading stories from files."""

import pytest

from story_narrator.errors import InputValidationError
from story_narrator.ingest import load_text
from story_narrator.ingest.loader import html_to_text


class TestLoadText:
    """Tests for format dispatch."""

    def test_plain_text(self, tmp_path):
        path = tmp_path / "story.txt"
        path.write_text('"Hello," said Anna.', encoding="utf-8")
        assert load_text(path) == '"Hello," said Anna.'

    def test_latin1_fallback(self, tmp_path):
        path = tmp_path / "story.txt"
        path.write_bytes("Caf\xe9 au lait.".encode("latin-1"))
        assert load_text(path) == "Café au lait."

    def test_html(self, tmp_path):
        path = tmp_path / "story.html"
        path.write_text(
            "<html><head><style>p {}</style></head>"
            "<body><p>First.</p><p>Second.</p><script>x()</script></body></html>",
            encoding="utf-8",
        )
        assert load_text(path) == "First.\n\nSecond."

    def test_epub(self, tmp_path):
        from ebooklib import epub

        book = epub.EpubBook()
        book.set_identifier("story-1")
        book.set_title("Story")
        book.set_language("en")
        chapter = epub.EpubHtml(title="One", file_name="one.xhtml", lang="en")
        chapter.content = "<h1>One</h1><p>Hello there, said Anna.</p>"
        book.add_item(chapter)
        book.toc = (chapter,)
        book.add_item(epub.EpubNcx())
        book.add_item(epub.EpubNav())
        book.spine = ["nav", chapter]

        path = tmp_path / "story.epub"
        epub.write_epub(str(path), book)

        assert "Hello there, said Anna." in load_text(path)

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "story.pdf"
        path.write_bytes(b"%PDF")
        with pytest.raises(InputValidationError):
            load_text(path)


class TestHtmlToText:
    """Tests for markup stripping."""

    def test_blocks_become_paragraphs(self):
        assert html_to_text("<div>A line.</div><div>  Another.  </div>") == "A line.\n\nAnother."

    def test_bytes_input(self):
        assert html_to_text(b"<p>Bytes work.</p>") == "Bytes work."
