"""Unit tests for transcoder outputs."""

import io

from ffpipe.options import PendingJob
from ffpipe.outputs import (
    Output,
    copy_audio,
    copy_output,
    copy_subtitles,
    default_h264,
    default_matroska,
    output_filename,
    output_format,
    output_writer,
)
from ffpipe.process import Process


class TestOutputRender:
    """Tests for Output.render."""

    def test_fixed_argument_order(self) -> None:
        """Codecs, then format, then destination, whatever the option order."""
        out = Output(
            output_filename("out.mkv"),
            default_matroska(),
            copy_subtitles(),
            copy_audio(),
            default_h264(),
        )
        args, writer = out.render()
        assert args == [
            "-c:v",
            "libx264",
            "-preset",
            "medium",
            "-tune",
            "film",
            "-c:a",
            "copy",
            "-c:s",
            "copy",
            "-f",
            "matroska",
            "-map_chapters",
            "0",
            "-y",
            "out.mkv",
        ]
        assert writer is None

    def test_copy_output(self) -> None:
        """copy_output copies both audio and video."""
        args, _ = Output(copy_output(), output_filename("out.mkv")).render()
        assert args == ["-c:v", "copy", "-c:a", "copy", "-y", "out.mkv"]

    def test_writer_uses_stdout(self) -> None:
        """A writer output targets ffmpeg's stdout."""
        sink = io.BytesIO()
        args, writer = Output(output_format("matroska"), output_writer(sink)).render()
        assert args == ["-f", "matroska", "-"]
        assert writer is sink

    def test_filename_beats_writer(self) -> None:
        """A filename takes precedence over a writer."""
        sink = io.BytesIO()
        args, writer = Output(output_writer(sink), output_filename("a.mkv")).render()
        assert args[-2:] == ["-y", "a.mkv"]
        assert writer is None

    def test_no_destination(self) -> None:
        """Without a destination only codec arguments are rendered."""
        assert Output(copy_audio()).render() == (["-c:a", "copy"], None)

    def test_with_options_extends(self) -> None:
        """with_options returns a new output with extra options."""
        base = Output(output_filename("out.mkv"))
        copied = base.with_options(copy_output())
        assert copied is not base
        assert copied.render()[0][:2] == ["-c:v", "copy"]
        assert base.render()[0] == ["-y", "out.mkv"]


class TestOutputApply:
    """Tests for Output.apply."""

    def test_apply_sets_stdout(self) -> None:
        sink = io.BytesIO()
        job = PendingJob(Process("ffmpeg"))
        Output(output_format("nut"), output_writer(sink)).apply(job)
        assert job.args == ["-f", "nut", "-"]
        assert job.stdout is sink

    def test_apply_file_leaves_stdout(self) -> None:
        job = PendingJob(Process("ffmpeg"))
        Output(output_filename("out.mkv")).apply(job)
        assert job.args == ["-y", "out.mkv"]
        assert job.stdout is None
