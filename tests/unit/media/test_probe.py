import json

import pytest

from src.tubely.media.probe import FFprobeProber, ProbeResult, parse_probe_output
from src.tubely.pipeline.pipeline_errors import MalformedMediaError, ProbeFailedError
from tests.helpers.uploads import write_tool


def _report(*streams) -> bytes:
    return json.dumps({"streams": list(streams)}).encode()


def test_parse_reads_first_stream_geometry():
    raw = _report({"codec_type": "video", "width": 1080, "height": 1920}, {"codec_type": "audio"})

    assert parse_probe_output(raw) == ProbeResult(width=1080, height=1920)


def test_parse_uses_first_stream_even_when_later_ones_have_geometry():
    raw = _report({"codec_type": "audio"}, {"width": 1920, "height": 1080})

    with pytest.raises(MalformedMediaError):
        parse_probe_output(raw)


@pytest.mark.parametrize("raw", [b"", b"not json", b"[1, 2]", b'{"streams": {}}'])
def test_parse_rejects_unusable_output(raw):
    with pytest.raises(ProbeFailedError):
        parse_probe_output(raw)


@pytest.mark.parametrize(
    "raw",
    [
        b"{}",
        _report(),
        _report({"width": 0, "height": 1080}),
        _report({"width": "1920", "height": 1080}),
        _report({"width": 1920}),
    ],
)
def test_parse_rejects_streams_without_geometry(raw):
    with pytest.raises(MalformedMediaError):
        parse_probe_output(raw)


def test_command_matches_ffprobe_invocation(tmp_path):
    prober = FFprobeProber(binary="ffprobe")
    target = tmp_path / "clip.mp4"

    assert prober.command(target) == [
        "ffprobe",
        "-v",
        "error",
        "-print_format",
        "json",
        "-show_streams",
        str(target),
    ]


@pytest.mark.asyncio
async def test_probe_runs_binary_and_parses_output(tmp_path):
    tool = write_tool(
        tmp_path / "ffprobe",
        """echo '{"streams": [{"width": 1280, "height": 720}]}'""",
    )

    result = await FFprobeProber(binary=str(tool)).probe(tmp_path / "clip.mp4")

    assert result == ProbeResult(width=1280, height=720)


@pytest.mark.asyncio
async def test_probe_non_zero_exit_fails(tmp_path):
    tool = write_tool(tmp_path / "ffprobe", "echo 'moov atom not found' >&2\nexit 1")

    with pytest.raises(ProbeFailedError):
        await FFprobeProber(binary=str(tool)).probe(tmp_path / "clip.mp4")


@pytest.mark.asyncio
async def test_probe_missing_binary_fails(tmp_path):
    with pytest.raises(ProbeFailedError):
        await FFprobeProber(binary=str(tmp_path / "no-ffprobe")).probe(tmp_path / "clip.mp4")


@pytest.mark.asyncio
async def test_probe_timeout_fails(tmp_path):
    tool = write_tool(tmp_path / "ffprobe", "exec sleep 10")
    prober = FFprobeProber(binary=str(tool), timeout_seconds=0.2)

    with pytest.raises(ProbeFailedError):
        await prober.probe(tmp_path / "clip.mp4")
