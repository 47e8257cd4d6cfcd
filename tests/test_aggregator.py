from __future__ import annotations

import asyncio
import base64
import struct
import threading
import zlib
from pathlib import Path

import core.aggregator as aggregator_module
from core.aggregator import NO_IMAGES_MARKER, ResultAggregator
from core.image_utils import image_dimensions
from core.models import BatchResult, DiagnosticTrace, GenerationFailure, GenerationSuccess
from fake_upstream import png_b64

LINK = "https://labs.google/fx/tools/whisk/project/wf"


def _aggregator() -> ResultAggregator:
    return ResultAggregator(file_prefix="whisk", clock=lambda: 1_700_000_000.5)


def _aggregate(outcomes, **kwargs) -> BatchResult:
    return asyncio.run(_aggregator().aggregate(outcomes, **kwargs))


def test_partial_failure_is_success_with_one_failure_detail() -> None:
    trace = DiagnosticTrace()
    outcomes = [
        GenerationFailure(index=0, detail="HTTP 500: first"),
        GenerationSuccess(index=1, payload="AAAA"),
        GenerationFailure(index=2, detail="HTTP 429: second"),
        GenerationSuccess(index=3, payload="BBBB"),
    ]

    result = _aggregate(outcomes, project_link=LINK, trace=trace)

    assert result.success is True
    assert [image.encoded_image for image in result.images] == [
        "data:image/jpeg;base64,AAAA",
        "data:image/jpeg;base64,BBBB",
    ]
    assert all(image.saved_path is None for image in result.images)
    assert result.diagnostics.count("Error #") == 1
    assert "HTTP 500: first" in result.diagnostics
    assert "second" not in result.diagnostics
    assert result.project_link == LINK
    assert result.error is None


def test_total_failure_reports_single_detail_and_marker() -> None:
    trace = DiagnosticTrace()
    outcomes = [GenerationFailure(index=i, detail=f"fail-{i}") for i in range(3)]

    result = _aggregate(outcomes, project_link=LINK, trace=trace)

    assert result.success is False
    assert result.images == []
    assert result.diagnostics.count("Error #") == 1
    assert "fail-0" in result.diagnostics
    assert NO_IMAGES_MARKER in result.diagnostics
    assert result.error.startswith(NO_IMAGES_MARKER)
    assert result.project_link == LINK


def test_saved_png_round_trips_with_same_dimensions(tmp_path) -> None:
    trace = DiagnosticTrace()
    outcomes = [GenerationSuccess(index=0, payload=png_b64(13, 7))]

    result = _aggregate(
        outcomes,
        project_link=LINK,
        trace=trace,
        save_folder=str(tmp_path / "out"),
    )

    image = result.images[0]
    expected = tmp_path / "out" / "whisk_1700000000_1.png"
    assert image.saved_path == str(expected)
    assert image.encoded_image == str(expected)
    assert image_dimensions(expected.read_bytes()) == (13, 7)


def test_undecodable_raster_is_written_verbatim(tmp_path) -> None:
    raw = b"definitely not an image"
    outcomes = [GenerationSuccess(index=4, payload=base64.b64encode(raw).decode("ascii"))]

    result = _aggregate(
        outcomes,
        project_link=LINK,
        trace=DiagnosticTrace(),
        save_folder=str(tmp_path),
    )

    saved = Path(result.images[0].saved_path)
    assert saved.name == "whisk_1700000000_5.png"
    assert saved.read_bytes() == raw


def test_persist_failure_keeps_payload_inline(tmp_path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file in the way", encoding="utf-8")
    trace = DiagnosticTrace()

    result = _aggregate(
        [GenerationSuccess(index=0, payload=png_b64())],
        project_link=LINK,
        trace=trace,
        save_folder=str(blocker),
    )

    assert result.success is True
    assert result.images[0].saved_path is None
    assert result.images[0].encoded_image.startswith("data:image/jpeg;base64,")
    assert "Save failed #1" in result.diagnostics


def _oversized_png_header(width: int, height: int) -> bytes:
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    chunk = b"IHDR" + ihdr
    return (
        b"\x89PNG\r\n\x1a\n"
        + struct.pack(">I", len(ihdr))
        + chunk
        + struct.pack(">I", zlib.crc32(chunk) & 0xFFFFFFFF)
    )


def test_oversized_raster_is_written_verbatim(tmp_path) -> None:
    raw = _oversized_png_header(30_000, 30_000)
    outcomes = [GenerationSuccess(index=0, payload=base64.b64encode(raw).decode("ascii"))]

    result = _aggregate(
        outcomes,
        project_link=LINK,
        trace=DiagnosticTrace(),
        save_folder=str(tmp_path),
    )

    assert result.success is True
    assert Path(result.images[0].saved_path).read_bytes() == raw


def test_images_are_written_off_the_event_loop_thread(tmp_path, monkeypatch) -> None:
    threads: list[int] = []
    original = aggregator_module.save_payload

    def _recording_save(payload, path):
        threads.append(threading.get_ident())
        return original(payload, path)

    monkeypatch.setattr(aggregator_module, "save_payload", _recording_save)

    result = _aggregate(
        [GenerationSuccess(index=0, payload=png_b64())],
        project_link=LINK,
        trace=DiagnosticTrace(),
        save_folder=str(tmp_path),
    )

    assert result.images[0].saved_path is not None
    assert threads and threads[0] != threading.get_ident()
