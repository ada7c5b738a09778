"""Tests for pattern table loading."""

import json

import pytest

from story_narrator.errors import TableError
from story_narrator.quality import ColorPaletteAnalyzer
from story_narrator.tables import TABLE_NAMES, load_table, table_versions


class TestBundledTables:
    """Tests for the tables shipped with the package."""

    def test_every_table_loads(self):
        versions = table_versions()
        assert set(versions) == set(TABLE_NAMES)
        assert all(versions.values())

    def test_cached(self):
        assert load_table("colors") is load_table("colors")

    def test_unknown_table(self):
        with pytest.raises(TableError):
            load_table("does_not_exist")


class TestOverrideDirectory:
    """Tests for swapping tables without touching code."""

    def test_custom_colors(self, tmp_path):
        (tmp_path / "colors.json").write_text(json.dumps({
            "version": "2.0.0",
            "colors": {"teal": "#008080"},
            "moods": {"teal": "calm"},
            "dominant_count": 3,
            "small_palette": 5,
            "max_palette": 10,
        }), encoding="utf-8")

        result = ColorPaletteAnalyzer(tmp_path).analyze("Teal walls, red door, teal floor.")
        assert [(c.color, c.frequency) for c in result.palette] == [("teal", 2)]
        assert result.overall_mood == "calm"

    def test_missing_table(self, tmp_path):
        with pytest.raises(TableError, match="not found"):
            load_table("colors", tmp_path)

    def test_invalid_json(self, tmp_path):
        (tmp_path / "colors.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(TableError, match="not valid JSON"):
            load_table("colors", tmp_path)

    def test_unversioned(self, tmp_path):
        (tmp_path / "colors.json").write_text('{"colors": {}}', encoding="utf-8")
        with pytest.raises(TableError, match="no version"):
            load_table("colors", tmp_path)
