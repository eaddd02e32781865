"""Tests for the ffpipe command line."""

import json
import logging
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from ffpipe.cli import main
from ffpipe.cli.exit_codes import ExitCode
from ffpipe.exceptions import (
    LaunchError,
    ProbeError,
    StreamTooShortError,
    ToolNotFoundError,
    TranscodeError,
)
from ffpipe.probe import FormatInfo, MediaInfo, parse_media_info
from ffpipe.testing import FakeTranscoder
from ffpipe.tools import ToolPaths
from ffpipe.types import InterlaceType


@pytest.fixture
def obj(fake_tools: ToolPaths) -> dict:
    """Context object with injected tool paths."""
    return {"tools": fake_tools}


class TestMainGroup:
    """Tests for options of the main command group."""

    def test_log_level_option(self, runner: CliRunner, obj: dict) -> None:
        """--log-level configures the root logger."""
        with patch("ffpipe.cli.doctor.detect_version", return_value="6.1"):
            result = runner.invoke(main, ["--log-level", "debug", "doctor"], obj=obj)
        assert result.exit_code == 0
        assert logging.getLogger().level == logging.DEBUG

    def test_resolves_tools_when_not_injected(self, runner: CliRunner) -> None:
        """Tool paths come from configuration unless a test injects them."""
        with (
            patch("ffpipe.cli.resolve_tools", return_value=ToolPaths()) as mock_resolve,
            patch("ffpipe.cli.doctor.detect_version"),
        ):
            result = runner.invoke(main, ["doctor"])
        mock_resolve.assert_called_once()
        assert result.exit_code == ExitCode.TOOL_NOT_FOUND

    def test_config_option(self, runner: CliRunner, obj: dict, tmp_path) -> None:
        """--config selects the file the interlace settings come from."""
        config_file = tmp_path / "custom.toml"
        config_file.write_text("[interlace]\nmin_frames = 99\n")
        with patch("ffpipe.cli.interlace.InterlaceDetector") as mock_detector:
            mock_detector.return_value.detect.return_value = InterlaceType.PROGRESSIVE
            args = ["--config", str(config_file), "detect-interlace", "a.mkv"]
            result = runner.invoke(main, args, obj=obj)
        assert result.exit_code == 0
        assert mock_detector.call_args.args[1].min_frames == 99


class TestProbeCommand:
    """Tests for ffpipe probe."""

    @patch("ffpipe.cli.probe.stat")
    def test_summary(
        self,
        mock_stat: MagicMock,
        runner: CliRunner,
        obj: dict,
        interlaced_dvd_fixture: dict,
    ) -> None:
        mock_stat.return_value = parse_media_info(json.dumps(interlaced_dvd_fixture))
        result = runner.invoke(main, ["probe", "/media/dvd.mkv"], obj=obj)
        assert result.exit_code == 0
        assert "Duration: 01:02:03.500000" in result.output
        assert "#0 video: mpeg2video 720x480 @ 29.970 fps (tt)" in result.output
        assert "#1 audio: ac3 2ch stereo" in result.output
        assert "#2 subtitle: dvd_subtitle" in result.output
        assert "Chapters: 2" in result.output
        mock_stat.assert_called_once_with("/media/dvd.mkv", obj["tools"])

    @patch("ffpipe.cli.probe.stat")
    def test_json(self, mock_stat: MagicMock, runner: CliRunner, obj: dict) -> None:
        mock_stat.return_value = MediaInfo(
            format=FormatInfo(filename="a.mkv", duration=timedelta(seconds=5))
        )
        result = runner.invoke(main, ["probe", "--json", "a.mkv"], obj=obj)
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["format"]["filename"] == "a.mkv"

    @patch("ffpipe.cli.probe.stat", side_effect=ProbeError("a.mkv: Invalid data"))
    def test_probe_failure(
        self, mock_stat: MagicMock, runner: CliRunner, obj: dict
    ) -> None:
        result = runner.invoke(main, ["probe", "a.mkv"], obj=obj)
        assert result.exit_code == ExitCode.PROBE_FAILED
        assert "Error: a.mkv: Invalid data" in result.output

    @patch("ffpipe.cli.probe.stat", side_effect=ToolNotFoundError("ffprobe"))
    def test_missing_ffprobe(
        self, mock_stat: MagicMock, runner: CliRunner, obj: dict
    ) -> None:
        result = runner.invoke(main, ["probe", "a.mkv"], obj=obj)
        assert result.exit_code == ExitCode.TOOL_NOT_FOUND


class TestCheckCommand:
    """Tests for ffpipe check."""

    def test_clean_file(self, runner: CliRunner, obj: dict) -> None:
        fake = FakeTranscoder()
        with patch("ffpipe.cli.transcode.Transcoder", return_value=fake):
            result = runner.invoke(main, ["check", "a.mkv"], obj=obj)
        assert result.exit_code == 0
        assert "a.mkv: OK" in result.output
        assert len(fake.jobs) == 1

    def test_prints_diagnostics(self, runner: CliRunner, obj: dict) -> None:
        fake = FakeTranscoder(log="[h264 @ 0x1] error while decoding MB 1 2")
        with patch("ffpipe.cli.transcode.Transcoder", return_value=fake):
            result = runner.invoke(main, ["check", "a.mkv"], obj=obj)
        assert result.exit_code == 0
        assert "error while decoding" in result.output

    def test_failed_decode(self, runner: CliRunner, obj: dict) -> None:
        error = TranscodeError("Conversion failed!", 1, "bad frame\nConversion failed!")
        fake = FakeTranscoder(job_error=error)
        with patch("ffpipe.cli.transcode.Transcoder", return_value=fake):
            result = runner.invoke(main, ["check", "a.mkv"], obj=obj)
        assert result.exit_code == ExitCode.TRANSCODE_FAILED
        assert "bad frame" in result.output

    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (LaunchError("failed to start ffmpeg"), ExitCode.TOOL_NOT_FOUND),
            (ProbeError("no such file"), ExitCode.PROBE_FAILED),
        ],
    )
    def test_launch_failures(
        self, runner: CliRunner, obj: dict, error: Exception, code: ExitCode
    ) -> None:
        fake = FakeTranscoder(transcode_error=error)
        with patch("ffpipe.cli.transcode.Transcoder", return_value=fake):
            result = runner.invoke(main, ["check", "a.mkv"], obj=obj)
        assert result.exit_code == code


class TestCopyCommand:
    """Tests for ffpipe copy."""

    def test_copy(self, runner: CliRunner, obj: dict) -> None:
        fake = FakeTranscoder()
        with patch("ffpipe.cli.transcode.Transcoder", return_value=fake):
            result = runner.invoke(main, ["copy", "a.mkv", "b.mkv"], obj=obj)
        assert result.exit_code == 0
        output = fake.jobs[0].options[1]
        assert output.render()[0] == ["-c:v", "copy", "-c:a", "copy", "-y", "b.mkv"]

    def test_interrupt_cancels_job(self, runner: CliRunner, obj: dict) -> None:
        """Ctrl-C cancels the running job and exits 130."""
        job = MagicMock()
        job.progress.__iter__.side_effect = KeyboardInterrupt
        job.wait.side_effect = TranscodeError("killed", -9)
        transcoder = MagicMock()
        transcoder.transcode.return_value = job
        with patch("ffpipe.cli.transcode.Transcoder", return_value=transcoder):
            result = runner.invoke(main, ["copy", "a.mkv", "b.mkv"], obj=obj)
        assert result.exit_code == ExitCode.INTERRUPTED
        job.cancel.assert_called_once_with()

    def test_failed_job(self, runner: CliRunner, obj: dict) -> None:
        fake = FakeTranscoder(job_error=TranscodeError("b.mkv: Permission denied", 1))
        with patch("ffpipe.cli.transcode.Transcoder", return_value=fake):
            result = runner.invoke(main, ["copy", "a.mkv", "b.mkv"], obj=obj)
        assert result.exit_code == ExitCode.TRANSCODE_FAILED
        assert "Permission denied" in result.output


class TestTranscodeCommand:
    """Tests for ffpipe transcode."""

    def _invoke(self, runner: CliRunner, obj: dict, *args: str):
        fake = FakeTranscoder()
        with patch("ffpipe.cli.transcode.Transcoder", return_value=fake):
            result = runner.invoke(main, ["transcode", *args], obj=obj)
        return result, fake

    def test_default_copies_audio(self, runner: CliRunner, obj: dict) -> None:
        result, fake = self._invoke(runner, obj, "a.mkv", "b.mkv")
        assert result.exit_code == 0
        _, output = fake.jobs[0].options
        assert output.render()[0] == ["-c:a", "copy", "-y", "b.mkv"]

    def test_all_options(self, runner: CliRunner, obj: dict) -> None:
        result, fake = self._invoke(
            runner,
            obj,
            "a.mkv",
            "b.mkv",
            "--filter",
            "yadif",
            "--h264",
            "--matroska",
            "--encode-audio",
            "--start",
            "00:01:00",
            "--duration",
            "00:00:30",
        )
        assert result.exit_code == 0
        inp, filter_option, output = fake.jobs[0].options
        assert filter_option.chain == "yadif"
        assert output.render()[0] == [
            "-c:v",
            "libx264",
            "-preset",
            "medium",
            "-tune",
            "film",
            "-f",
            "matroska",
            "-map_chapters",
            "0",
            "-y",
            "b.mkv",
        ]
        with patch("ffpipe.inputs.stat") as mock_stat:
            mock_stat.return_value = MediaInfo(format=FormatInfo(filename="a.mkv"))
            assert inp.render() == [
                "-ss",
                "00:01:00.000000",
                "-t",
                "00:00:30.000000",
                "-i",
                "a.mkv",
            ]

    def test_format_option(self, runner: CliRunner, obj: dict) -> None:
        result, fake = self._invoke(runner, obj, "a.mkv", "b.ts", "--format", "mpegts")
        assert result.exit_code == 0
        assert "mpegts" in fake.jobs[0].options[-1].render()[0]

    def test_bad_timecode(self, runner: CliRunner, obj: dict) -> None:
        """An invalid --start is a usage error."""
        result, fake = self._invoke(runner, obj, "a.mkv", "b.mkv", "--start", "soon")
        assert result.exit_code == 2
        assert "invalid timecode" in result.output
        assert fake.jobs == []


class TestDetectInterlaceCommand:
    """Tests for ffpipe detect-interlace."""

    def test_verdict(self, runner: CliRunner, obj: dict) -> None:
        with patch("ffpipe.cli.interlace.InterlaceDetector") as mock_detector:
            mock_detector.return_value.detect.return_value = InterlaceType.TELECINE
            result = runner.invoke(main, ["detect-interlace", "dvd.mkv"], obj=obj)
        assert result.exit_code == 0
        assert "dvd.mkv: telecine" in result.output

    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (StreamTooShortError(40, 250), ExitCode.STREAM_TOO_SHORT),
            (TranscodeError("Conversion failed!", 1), ExitCode.TRANSCODE_FAILED),
            (ProbeError("no such file"), ExitCode.PROBE_FAILED),
            (ToolNotFoundError("ffmpeg"), ExitCode.TOOL_NOT_FOUND),
        ],
    )
    def test_failures(
        self, runner: CliRunner, obj: dict, error: Exception, code: ExitCode
    ) -> None:
        with patch("ffpipe.cli.interlace.InterlaceDetector") as mock_detector:
            mock_detector.return_value.detect.side_effect = error
            result = runner.invoke(main, ["detect-interlace", "dvd.mkv"], obj=obj)
        assert result.exit_code == code
        assert str(error) in result.output


class TestDoctorCommand:
    """Tests for ffpipe doctor."""

    @patch("ffpipe.cli.doctor.detect_version", return_value="6.1.1")
    def test_all_found(
        self, mock_version: MagicMock, runner: CliRunner, obj: dict
    ) -> None:
        result = runner.invoke(main, ["doctor"], obj=obj)
        assert result.exit_code == 0
        assert "ffmpeg: 6.1.1" in result.output
        assert "ffprobe: 6.1.1" in result.output

    @patch("ffpipe.cli.doctor.detect_version", return_value=None)
    def test_missing_tool(
        self, mock_version: MagicMock, runner: CliRunner, fake_tools: ToolPaths
    ) -> None:
        tools = ToolPaths(ffmpeg=fake_tools.ffmpeg, ffprobe=None)
        result = runner.invoke(main, ["doctor"], obj={"tools": tools})
        assert result.exit_code == ExitCode.TOOL_NOT_FOUND
        assert "ffprobe: not found" in result.output
        assert "ffmpeg: unknown version" in result.output

    @patch("ffpipe.cli.doctor.detect_version", return_value="7.0")
    def test_json(
        self, mock_version: MagicMock, runner: CliRunner, fake_tools: ToolPaths
    ) -> None:
        result = runner.invoke(main, ["doctor", "--json"], obj={"tools": fake_tools})
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["ffmpeg"] == {"path": str(fake_tools.ffmpeg), "version": "7.0"}
