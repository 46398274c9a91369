"""Tests for the rendition pipeline."""

from pathlib import Path

from reelcut.models import CutWindow, RenditionVariant
from reelcut.pipeline.materializer import MaterializedCut
from reelcut.pipeline.rendition import RenditionPipeline

from conftest import FakeMediaTool


def _cut(output_dir, title="Como a inflação afeta seu bolso"):
    clip = output_dir / "horizontal" / "clip.mp4"
    clip.parent.mkdir(parents=True, exist_ok=True)
    clip.write_bytes(b"clip")
    cut = MaterializedCut(
        cut=CutWindow(title=title, begin=0, end=60),
        segment_index=1,
        stem="clip",
        clip_path=clip,
    )
    cut.artifacts[RenditionVariant.HORIZONTAL] = clip
    return cut


class TestRenditionPipeline:
    """Tests for RenditionPipeline.render."""

    def test_no_templates_only_horizontal(self, tmp_path, channel):
        media = FakeMediaTool()
        cut = _cut(tmp_path)

        produced = RenditionPipeline(media, channel).render(cut, tmp_path)

        assert produced == {RenditionVariant.HORIZONTAL: cut.clip_path}
        assert media.calls == []

    def test_all_variants(self, tmp_path, channel):
        channel = channel.model_copy(update={
            "cover_base": "cover.png",
            "vertical_base": "vertical.png",
            "horizontal_base": "horizontal.png",
            "font_size": "48",
        })
        media = FakeMediaTool()
        cut = _cut(tmp_path)

        produced = RenditionPipeline(media, channel).render(cut, tmp_path)

        assert produced[RenditionVariant.COVER] == tmp_path / "covers" / "clip.jpg"
        assert produced[RenditionVariant.VERTICAL] == tmp_path / "vertical" / "clip.mp4"
        assert produced[RenditionVariant.HORIZONTAL_PUBLISHABLE] == tmp_path / "horizontal-yt" / "clip.mp4"
        assert all(path.exists() for path in produced.values())
        assert cut.artifacts == produced

        (cover_call,) = media.calls_of("cover")
        assert cover_call[1] == Path("cover.png")
        assert cover_call[3] == "Como a inflação\nafeta seu bolso"
        assert cover_call[4:] == ("48", "white")

        overlays = media.calls_of("overlay")
        assert [(c[1], c[2]) for c in overlays] == [
            (Path("vertical.png"), cut.clip_path),
            (Path("horizontal.png"), cut.clip_path),
        ]

    def test_failed_variant_does_not_stop_others(self, tmp_path, channel):
        channel = channel.model_copy(update={
            "cover_base": "cover.png",
            "vertical_base": "vertical.png",
        })
        media = FakeMediaTool()
        media.fail["cover"] = lambda path: True
        cut = _cut(tmp_path)

        produced = RenditionPipeline(media, channel).render(cut, tmp_path)

        assert RenditionVariant.COVER not in produced
        assert produced[RenditionVariant.VERTICAL].exists()

    def test_templates_only_configured(self, channel):
        channel = channel.model_copy(update={"vertical_base": "v.png"})

        assert RenditionPipeline(FakeMediaTool(), channel).templates() == {
            RenditionVariant.VERTICAL: "v.png",
        }
