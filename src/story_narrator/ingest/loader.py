"""Load stories from various formats."""

import logging
from pathlib import Path

from bs4 import BeautifulSoup

from story_narrator.errors import InputValidationError

logger = logging.getLogger(__name__)


def load_text(path: Path) -> str:
    """
    Load a story from file and return plain text.

    Supports:
    - .txt and .md files (read directly)
    - .html files (visible text)
    - .epub files (extract text from each document)
    """
    suffix = path.suffix.lower()

    if suffix in (".txt", ".md"):
        return load_txt(path)
    elif suffix in (".html", ".htm"):
        return html_to_text(load_txt(path))
    elif suffix == ".epub":
        return load_epub(path)
    else:
        raise InputValidationError(f"Unsupported file format: {suffix}")


def load_txt(path: Path) -> str:
    """Load a plain text file."""
    # Try common encodings
    for encoding in ["utf-8", "utf-8-sig", "latin-1", "cp1252"]:
        try:
            return path.read_text(encoding=encoding)
        except UnicodeDecodeError:
            continue

    raise InputValidationError(f"Could not decode {path} with any common encoding")


def html_to_text(markup: str | bytes) -> str:
    """Strip markup, keeping one line per block of visible text."""
    soup = BeautifulSoup(markup, "html.parser")

    for element in soup(["script", "style"]):
        element.decompose()

    text = soup.get_text(separator="\n")
    lines = [line.strip() for line in text.splitlines()]
    # Blank line between blocks so paragraphs survive
    return "\n\n".join(line for line in lines if line)


def load_epub(path: Path) -> str:
    """Load an EPUB file and extract text."""
    import ebooklib
    from ebooklib import epub

    book = epub.read_epub(str(path))
    texts: list[str] = []

    for item in book.get_items():
        if item.get_type() == ebooklib.ITEM_DOCUMENT:
            text = html_to_text(item.get_content())
            if text:
                texts.append(text)

    logger.info("Loaded %d documents from %s", len(texts), path.name)
    return "\n\n".join(texts)
