"""Tests for text splitting."""

from story_narrator.ingest.splitter import paragraph_spans, sentence_spans


def sentences_of(text):
    return [span.text for span in sentence_spans(text)]


def paragraphs_of(text):
    return [span.text for span in paragraph_spans(text)]


class TestSentenceSplitting:
    """Test sentence boundary detection."""

    def test_simple_sentences(self):
        text = "This is sentence one. This is sentence two. And a third!"
        sentences = sentences_of(text)
        assert len(sentences) == 3
        assert sentences[0] == "This is sentence one."
        assert sentences[1] == "This is sentence two."
        assert sentences[2] == "And a third!"

    def test_abbreviations(self):
        text = "Mr. Holmes went to see Dr. Watson. They talked for hours."
        sentences = sentences_of(text)
        assert len(sentences) == 2
        assert "Mr. Holmes" in sentences[0]
        assert "Dr. Watson" in sentences[0]

    def test_dialogue(self):
        text = '"Hello," said Anna. "Where are you going?" asked Tom.'
        sentences = sentences_of(text)
        assert len(sentences) == 2

    def test_question_and_exclamation(self):
        text = "What is this? It is the key! We must hide it."
        sentences = sentences_of(text)
        assert len(sentences) == 3


class TestParagraphSplitting:
    """Test paragraph boundary detection."""

    def test_double_newline(self):
        text = "First paragraph.\n\nSecond paragraph."
        paragraphs = paragraphs_of(text)
        assert len(paragraphs) == 2

    def test_multiple_newlines(self):
        text = "First.\n\n\n\nSecond."
        paragraphs = paragraphs_of(text)
        assert len(paragraphs) == 2

    def test_empty_paragraphs_filtered(self):
        text = "First.\n\n   \n\nSecond."
        paragraphs = paragraphs_of(text)
        assert len(paragraphs) == 2


class TestSpans:
    """Spans keep offsets into the original text."""

    def test_paragraph_offsets(self):
        text = "  First one.\n\nSecond one.  "
        spans = paragraph_spans(text)

        assert [s.text for s in spans] == ["First one.", "Second one."]
        for span in spans:
            assert text[span.start:span.end] == span.text

    def test_sentence_offsets_with_shift(self):
        paragraph = "It rained. We stayed in."
        spans = sentence_spans(paragraph, offset=100)

        assert [s.text for s in spans] == ["It rained.", "We stayed in."]
        assert spans[0].start == 100
        assert spans[1].start == 100 + paragraph.index("We")

    def test_blank_text(self):
        assert paragraph_spans("   \n\n  ") == []
        assert sentence_spans("") == []
