"""Tests for atomic storage helpers."""

import json
from unittest.mock import patch

import pytest

from reelcut.models import VideoMetadata
from reelcut.storage import StorageError, atomic_write, atomic_write_json, save_model


class TestAtomicWrite:
    """Tests for atomic writes."""

    def test_creates_parents_and_replaces(self, tmp_path):
        target = tmp_path / "a" / "b" / "report.json"

        atomic_write(target, "first")
        atomic_write(target, "second")

        assert target.read_text(encoding="utf-8") == "second"
        assert [p.name for p in target.parent.iterdir()] == ["report.json"]

    def test_failed_replace_leaves_no_temp_file(self, tmp_path):
        target = tmp_path / "report.json"
        target.write_text("old", encoding="utf-8")

        with patch("reelcut.storage.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StorageError):
                atomic_write(target, "new")

        assert target.read_text(encoding="utf-8") == "old"
        assert [p.name for p in tmp_path.iterdir()] == ["report.json"]

    def test_json_keeps_unicode(self, tmp_path):
        target = tmp_path / "report.json"

        atomic_write_json(target, {"title": "Inflação"})

        assert "Inflação" in target.read_text(encoding="utf-8")

    def test_save_model(self, tmp_path):
        target = tmp_path / "meta.json"

        save_model(target, VideoMetadata(title="T", hashtags=["a"]))

        assert json.loads(target.read_text(encoding="utf-8"))["hashtags"] == ["#a"]
