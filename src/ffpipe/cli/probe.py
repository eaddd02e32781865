"""ffpipe probe command."""

from __future__ import annotations

import click

from ffpipe.cli.exit_codes import ExitCode
from ffpipe.cli.output import error_exit
from ffpipe.exceptions import LaunchError, ProbeError
from ffpipe.probe import MediaInfo, stat
from ffpipe.timecode import format_timecode


def _format_media_info(info: MediaInfo) -> list[str]:
    lines = [
        f"File:     {info.filename}",
        f"Format:   {info.format.format_long_name or info.format.format_name}",
        f"Duration: {format_timecode(info.duration)}",
    ]
    for video in info.video_streams:
        fps = float(video.avg_frame_rate) if video.avg_frame_rate else 0.0
        rate = f" @ {fps:.3f} fps" if fps else ""
        lines.append(
            f"  #{video.index} video: {video.codec_name} "
            f"{video.width}x{video.height}{rate} ({video.field_order.value})"
        )
    for audio in info.audio_streams:
        lines.append(
            f"  #{audio.index} audio: {audio.codec_name} "
            f"{audio.channels}ch {audio.channel_layout}".rstrip()
        )
    for subtitle in info.subtitle_streams:
        lines.append(f"  #{subtitle.index} subtitle: {subtitle.codec_name}")
    if info.chapters:
        lines.append(f"Chapters: {len(info.chapters)}")
    return lines


@click.command("probe")
@click.argument("filename")
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output the parsed media descriptor as JSON.",
)
@click.pass_context
def probe_command(ctx: click.Context, filename: str, json_output: bool) -> None:
    """Show what ffprobe reports about FILENAME."""
    try:
        info = stat(filename, ctx.obj["tools"])
    except LaunchError as e:
        error_exit(str(e), ExitCode.TOOL_NOT_FOUND)
    except ProbeError as e:
        error_exit(str(e), ExitCode.PROBE_FAILED)

    if json_output:
        click.echo(info.model_dump_json(indent=2))
        return
    for line in _format_media_info(info):
        click.echo(line)
