"""Tests for the command-line interface."""

import json
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from typer.testing import CliRunner

from reelcut import __version__
from reelcut.cli import app
from reelcut.errors import CredentialError, MediaToolNotFoundError
from reelcut.ffmpeg_binary import ToolInfo
from reelcut.pipeline.processor import VideoResult, VideoStatus

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({
            "openai": {"key": "sk-test"},
            "credentials_path": str(tmp_path / "credentials.json"),
            "token_path": str(tmp_path / "token.json"),
            "channels": [
                {"id": "economia", "name": "Economia", "Channel_id": "UC1", "folder": str(tmp_path / "out")},
                {"id": "saude", "name": "Saude", "Channel_id": "UC2", "folder": str(tmp_path / "out2")},
            ],
        }),
        encoding="utf-8",
    )
    return path


def _processor(*results):
    processor = Mock()
    processor.process_channel.return_value = list(results)
    return processor


class TestBasics:
    """Tests for global options."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_channels(self, config_file):
        result = runner.invoke(app, ["channels", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "economia" in result.output
        assert "saude" in result.output

    def test_missing_config(self, tmp_path):
        result = runner.invoke(app, ["channels", "--config", str(tmp_path / "nope.json")])

        assert result.exit_code == 1
        assert "not found" in result.output


class TestExec:
    """Tests for the exec command."""

    def test_single_channel(self, config_file, tmp_path):
        done = VideoResult(video_id="vid1", output_dir=tmp_path, status=VideoStatus.COMPLETED)
        processor = _processor(done)

        with patch("reelcut.cli.build_channel_processor", return_value=processor) as build:
            result = runner.invoke(app, ["exec", "economia", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "vid1" in result.output
        assert build.call_count == 1
        assert build.call_args.args[1].id == "economia"
        processor.process_channel.assert_called_once_with(force=False)

    def test_all_channels(self, config_file):
        with patch("reelcut.cli.build_channel_processor", return_value=_processor()) as build:
            result = runner.invoke(app, ["exec", "--config", str(config_file), "--force"])

        assert result.exit_code == 0
        assert [c.args[1].id for c in build.call_args_list] == ["economia", "saude"]

    def test_single_video(self, config_file):
        with patch("reelcut.cli.build_channel_processor", return_value=_processor()) as build:
            result = runner.invoke(app, ["exec", "economia", "-v", "abc123", "--config", str(config_file)])

        assert result.exit_code == 0
        assert build.call_args.args[1].channel_id == "v=abc123"

    def test_video_requires_channel(self, config_file):
        result = runner.invoke(app, ["exec", "--video", "abc123", "--config", str(config_file)])

        assert result.exit_code == 1

    def test_unknown_channel(self, config_file):
        result = runner.invoke(app, ["exec", "nope", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_parallel_override(self, config_file):
        with patch("reelcut.cli.build_channel_processor", return_value=_processor()) as build:
            runner.invoke(app, ["exec", "economia", "--parallel", "4", "--config", str(config_file)])

        assert build.call_args.args[0].max_parallel_videos == 4

    def test_failed_video_sets_exit_code(self, config_file, tmp_path):
        failed = VideoResult(video_id="vid1", output_dir=tmp_path, status=VideoStatus.FAILED)
        failed.record_error("download", "yt-dlp failed")

        with patch("reelcut.cli.build_channel_processor", return_value=_processor(failed)):
            result = runner.invoke(app, ["exec", "economia", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "download: yt-dlp failed" in result.output

    def test_missing_media_tool(self, config_file):
        with patch(
            "reelcut.cli.build_channel_processor",
            side_effect=MediaToolNotFoundError("FFmpeg not found"),
        ):
            result = runner.invoke(app, ["exec", "economia", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "FFmpeg not found" in result.output

    def test_missing_api_key(self, tmp_path, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"channels": [{"id": "a", "folder": str(tmp_path)}]}), encoding="utf-8")

        with patch("reelcut.cli.build_channel_processor") as build:
            result = runner.invoke(app, ["exec", "--config", str(path)])

        assert result.exit_code == 1
        build.assert_not_called()


class TestLogin:
    """Tests for the login command."""

    def test_login(self, config_file, tmp_path):
        with patch("reelcut.cli.run_login_flow") as flow:
            result = runner.invoke(app, ["login", "--config", str(config_file), "--no-browser"])

        assert result.exit_code == 0
        secrets, store = flow.call_args.args
        assert secrets == tmp_path / "credentials.json"
        assert store.token_path == tmp_path / "token.json"
        assert flow.call_args.kwargs == {"open_browser": False}

    def test_login_failure(self, config_file):
        with patch("reelcut.cli.run_login_flow", side_effect=CredentialError("Client secrets file not found")):
            result = runner.invoke(app, ["login", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "Client secrets file not found" in result.output


class TestCheck:
    """Tests for the check command."""

    def test_all_tools_available(self, tmp_path):
        report = [
            ToolInfo("ffmpeg", "/bin/ffmpeg", "6.0", "system"),
            ToolInfo("ffprobe", "/bin/ffprobe", "6.0", "system"),
            ToolInfo("yt-dlp", "/bin/yt-dlp", "2024.01.01", "system"),
        ]
        with patch("reelcut.cli.get_tool_report", return_value=report):
            result = runner.invoke(app, ["check", "--config", str(tmp_path / "none.json")])

        assert result.exit_code == 0
        assert "ffprobe" in result.output

    def test_missing_tool(self, tmp_path):
        report = [ToolInfo("ffmpeg", None, None, "not_found")]
        with patch("reelcut.cli.get_tool_report", return_value=report):
            result = runner.invoke(app, ["check", "--config", str(tmp_path / "none.json")])

        assert result.exit_code == 1
        assert "Not found" in result.output
