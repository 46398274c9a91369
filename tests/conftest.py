"""Shared fixtures for reelcut tests."""

from pathlib import Path

import pytest

from reelcut.config import AppConfig, ChannelConfig
from reelcut.errors import DurationProbeError, EncodingError
from reelcut.ffmpeg import EncodingMode, MediaTool


class FakeMediaTool(MediaTool):
    """MediaTool that records calls and writes placeholder files.

    Durations are looked up by file name; ``fail`` maps an operation name to
    a predicate on the output path that makes the call raise EncodingError.
    """

    def __init__(self, durations=None, default_duration=600.0):
        self.durations = dict(durations or {})
        self.default_duration = default_duration
        self.calls = []
        self.fail = {}

    def _write(self, operation, output_path, payload=b"media"):
        check = self.fail.get(operation)
        if check is not None and check(Path(output_path)):
            raise EncodingError(f"{operation} failed", context={"path": str(output_path)})
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(payload)
        return output_path

    def probe_duration(self, path):
        path = Path(path)
        self.calls.append(("probe", path))
        if path.name in self.durations:
            duration = self.durations[path.name]
        else:
            duration = self.default_duration
        if duration is None:
            raise DurationProbeError("Unreadable duration", context={"path": str(path)})
        return duration

    def extract_slice(self, input_path, output_path, start, duration, mode=EncodingMode.COPY):
        self.calls.append(("slice", Path(input_path), Path(output_path), start, duration, mode))
        return self._write("slice", output_path)

    def burn_captions(self, input_path, caption_path, output_path):
        caption_text = Path(caption_path).read_text(encoding="utf-8")
        self.calls.append(("burn", Path(input_path), caption_text, Path(output_path)))
        return self._write("burn", output_path)

    def compose_overlay(self, template_path, clip_path, output_path):
        self.calls.append(("overlay", Path(template_path), Path(clip_path), Path(output_path)))
        return self._write("overlay", output_path)

    def render_cover(
        self,
        template_path,
        output_path,
        text,
        font_size="36",
        font_color="white",
        font_file="",
        effect="",
    ):
        self.calls.append(("cover", Path(template_path), Path(output_path), text, font_size, font_color))
        return self._write("cover", output_path, b"jpg")

    def calls_of(self, operation):
        return [c for c in self.calls if c[0] == operation]


SAMPLE_VTT = """WEBVTT
Kind: captions
Language: pt

00:00:00.000 --> 00:00:05.000 align:start position:0%
A

00:00:10.000 --> 00:00:20.000
B

00:00:40.000 --> 00:00:50.000
C
"""


@pytest.fixture
def fake_media():
    return FakeMediaTool()


@pytest.fixture
def channel(tmp_path):
    return ChannelConfig(
        id="canal",
        name="Canal de Teste",
        Channel_id="UC123",
        folder=tmp_path / "out",
        topics="economia",
        excerpts=2,
        stretch_time=1,
    )


@pytest.fixture
def app_config(channel):
    return AppConfig(channels=[channel], openai={"key": "sk-test"})
