"""Tests for cut materialization."""

import json
from pathlib import Path
from unittest.mock import Mock

import pytest

from reelcut.errors import DurationProbeError, EncodingError
from reelcut.ffmpeg import EncodingMode
from reelcut.models import CutWindow, MediaSegment, RenditionVariant, VideoMetadata
from reelcut.pipeline.materializer import CutMaterializer

from conftest import FakeMediaTool

SEGMENT_SRT = (
    "1\n00:00:15,000 --> 00:00:20,000\nA\n\n"
    "2\n00:00:25,000 --> 00:00:35,000\nB\n\n"
    "3\n00:00:40,000 --> 00:00:50,000\nC\n\n"
)


@pytest.fixture
def segment(tmp_path):
    media = tmp_path / "src" / "abc.mp4"
    media.parent.mkdir()
    media.write_bytes(b"source")
    captions = tmp_path / "src" / "abc.srt"
    captions.write_text(SEGMENT_SRT, encoding="utf-8")
    return MediaSegment(index=1, media_path=media, caption_path=captions, duration_bound=600)


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "out"


class TestCutMaterializer:
    """Tests for CutMaterializer.materialize."""

    def test_materializes_captioned_clip(self, segment, output_dir):
        media = FakeMediaTool(default_duration=600.0)
        materializer = CutMaterializer(media)

        results = materializer.materialize(segment, [CutWindow(title="Juros Altos", begin=15, end=30)], output_dir)

        assert len(results) == 1
        cut = results[0]
        assert cut.stem == "Juros_Altos"
        assert cut.clip_path == output_dir / "horizontal" / "Juros_Altos.mp4"
        assert cut.clip_path.exists()
        assert cut.captioned
        assert cut.artifacts == {RenditionVariant.HORIZONTAL: cut.clip_path}

        (slice_call,) = media.calls_of("slice")
        assert slice_call[1] == segment.media_path
        assert slice_call[3:] == (15.0, 15.0, EncodingMode.REENCODE)

        (_, _, caption_text, burned_to), = media.calls_of("burn")
        assert caption_text == (
            "1\n00:00:00,000 --> 00:00:05,000\nA\n\n"
            "2\n00:00:10,000 --> 00:00:15,000\nB\n\n"
        )
        assert burned_to == cut.clip_path

    def test_working_files_removed(self, segment, output_dir):
        materializer = CutMaterializer(FakeMediaTool())

        materializer.materialize(segment, [CutWindow(title="A", begin=15, end=30)], output_dir)

        assert sorted(p.name for p in output_dir.iterdir()) == ["horizontal"]

    def test_transcript_uses_contained_entries(self, segment, output_dir):
        results = CutMaterializer(FakeMediaTool()).materialize(
            segment, [CutWindow(title="A", begin=15, end=30)], output_dir
        )

        assert results[0].transcript == "A"

    def test_invalid_cut_skipped(self, segment, output_dir):
        """An out-of-range window is recorded while later windows still render."""
        materializer = CutMaterializer(FakeMediaTool(default_duration=600.0))
        cuts = [
            CutWindow(title="X", begin=0, end=9999),
            CutWindow(title="Y", begin=40, end=50),
        ]

        results = materializer.materialize(segment, cuts, output_dir)

        assert [r.title for r in results] == ["Y"]
        assert [(f.cut.title, f.stage) for f in materializer.failures] == [("X", "validate")]

    def test_burn_failure_keeps_plain_clip(self, segment, output_dir):
        media = FakeMediaTool()
        media.fail["burn"] = lambda path: True

        results = CutMaterializer(media).materialize(segment, [CutWindow(title="A", begin=15, end=30)], output_dir)

        assert not results[0].captioned
        assert results[0].clip_path.read_bytes() == b"media"
        assert sorted(p.name for p in output_dir.iterdir()) == ["horizontal"]

    def test_no_captions_in_window(self, segment, output_dir):
        media = FakeMediaTool()

        results = CutMaterializer(media).materialize(
            segment, [CutWindow(title="Quiet", begin=100, end=160)], output_dir
        )

        assert not results[0].captioned
        assert results[0].clip_path.exists()
        assert media.calls_of("burn") == []

    def test_segment_without_captions(self, tmp_path, output_dir):
        media_path = tmp_path / "abc.mp4"
        media_path.write_bytes(b"x")
        bare = MediaSegment(index=1, media_path=media_path, duration_bound=600)

        results = CutMaterializer(FakeMediaTool()).materialize(bare, [CutWindow(title="A", begin=0, end=10)], output_dir)

        assert results[0].transcript == ""
        assert not results[0].captioned

    def test_extract_failure_recorded(self, segment, output_dir):
        media = FakeMediaTool()
        media.fail["slice"] = lambda path: "First" in path.name
        materializer = CutMaterializer(media)
        cuts = [CutWindow(title="First", begin=0, end=10), CutWindow(title="Second", begin=10, end=20)]

        results = materializer.materialize(segment, cuts, output_dir)

        assert [r.title for r in results] == ["Second"]
        assert [(f.cut.title, f.stage) for f in materializer.failures] == [("First", "materialize")]

    def test_partial_slice_removed_on_failure(self, segment, output_dir):
        media = FakeMediaTool()

        def interrupted_slice(input_path, output_path, start, duration, mode=EncodingMode.COPY):
            Path(output_path).parent.mkdir(parents=True, exist_ok=True)
            Path(output_path).write_bytes(b"partial")
            raise EncodingError("ffmpeg killed")

        media.extract_slice = interrupted_slice
        materializer = CutMaterializer(media)

        results = materializer.materialize(segment, [CutWindow(title="A", begin=15, end=30)], output_dir)

        assert results == []
        assert list(output_dir.glob("temp_*")) == []
        assert [f.stage for f in materializer.failures] == ["materialize"]

    def test_duplicate_titles_get_unique_stems(self, segment, output_dir):
        cuts = [CutWindow(title="Tema", begin=0, end=10), CutWindow(title="Tema", begin=20, end=30)]

        results = CutMaterializer(FakeMediaTool()).materialize(segment, cuts, output_dir)

        assert [r.stem for r in results] == ["Tema", "Tema_2"]
        assert all(r.clip_path.exists() for r in results)

    def test_segment_prefix(self, segment, output_dir):
        results = CutMaterializer(FakeMediaTool()).materialize(
            segment, [CutWindow(title="Tema", begin=0, end=10)], output_dir, prefix_segment=True
        )

        assert results[0].stem == "part1_Tema"

    def test_probe_failure_propagates(self, segment, output_dir):
        media = FakeMediaTool(durations={"abc.mp4": None})

        with pytest.raises(DurationProbeError):
            CutMaterializer(media).materialize(segment, [CutWindow(title="A", begin=0, end=10)], output_dir)

    def test_metadata_saved(self, segment, output_dir):
        generator = Mock()
        generator.generate.return_value = VideoMetadata(title="SEO title", tags=["juros"])

        results = CutMaterializer(FakeMediaTool(), generator).materialize(
            segment, [CutWindow(title="A", begin=15, end=30)], output_dir, topics="economia"
        )

        generator.generate.assert_called_once_with("A", "A", "economia")
        cut = results[0]
        assert cut.metadata_path == output_dir / "horizontal" / "A.json"
        saved = json.loads(cut.metadata_path.read_text(encoding="utf-8"))
        assert saved["title"] == "SEO title"

    def test_metadata_failure_keeps_clip(self, segment, output_dir):
        generator = Mock()
        generator.generate.return_value = None

        results = CutMaterializer(FakeMediaTool(), generator).materialize(
            segment, [CutWindow(title="A", begin=15, end=30)], output_dir
        )

        assert results[0].metadata is None
        assert results[0].metadata_path is None
        assert results[0].clip_path.exists()
