"""End-to-end tests for vidsub.pipeline.run_pipeline.

The sampler runs for real, against a fake OpenCV capture or a clip encoded
with cv2.VideoWriter; ffprobe and the model client are mocked.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import cv2
import numpy as np
import pytest

from vidsub.errors import ConfigurationError, DecodeError
from vidsub.inference.client import GeminiClient, reset_client
from vidsub.models import SampledVideo, VideoInfo
from vidsub.pipeline import STAGE_WEIGHTS, PipelineStage, run_pipeline, scaled_progress

PROBE_TARGET = "vidsub.ingestion.frames.probe_video"
CAPTURE_TARGET = "vidsub.ingestion.frames.cv2.VideoCapture"


def _fake_capture(width: int = 64, height: int = 48) -> MagicMock:
    capture = MagicMock()
    capture.isOpened.return_value = True
    capture.set.return_value = True
    capture.get.return_value = 0.0
    capture.read.return_value = (True, np.zeros((height, width, 3), dtype=np.uint8))
    return capture


def _fake_model(ocr_response: str, translation_response: str) -> MagicMock:
    """Client whose recognition calls (with a response config) and translation calls differ."""
    client = MagicMock(spec=GeminiClient)
    client.text_part.side_effect = GeminiClient.text_part
    client.jpeg_part.side_effect = GeminiClient.jpeg_part

    def _generate(parts, config=None):
        return ocr_response if config is not None else translation_response

    client.generate.side_effect = _generate
    return client


HI_SPAN = json.dumps([{"text": "hi", "boundingBox": {"x": 10, "y": 20, "width": 4, "height": 6}}])


class TestEndToEnd:
    def test_two_second_clip_translated_and_positioned(self, tmp_path: Path) -> None:
        # A nominal 2 s clip at 25 fps with 49 frames probes as 1.96 s,
        # giving samples at 0, 0.5, 1.0 and 1.5.
        info = VideoInfo(width=64, height=48, duration_s=1.96, fps=25.0)
        client = _fake_model(HI_SPAN, "chào")

        with patch(PROBE_TARGET, return_value=info), patch(CAPTURE_TARGET, return_value=_fake_capture()):
            result = run_pipeline(tmp_path / "clip.mp4", rate=2.0, client=client)

        dialogues = [line for line in result.document.splitlines() if line.startswith("Dialogue:")]
        assert len(dialogues) == 4
        assert all(line.endswith("{\\pos(12,23)}chào") for line in dialogues)
        assert [e.start for e in result.events] == [0.0, 0.5, 1.0, 1.5]
        assert all(e.end - e.start == 0.5 for e in result.events)
        assert "PlayResX: 64\nPlayResY: 48\n" in result.document
        assert result.frame_count == 4
        # Four recognition requests plus a single batched translation request.
        assert client.generate.call_count == 5

    def test_encoded_clip_through_real_decoder(self, tmp_path: Path) -> None:
        clip = tmp_path / "clip.mp4"
        writer = cv2.VideoWriter(str(clip), cv2.VideoWriter_fourcc(*"mp4v"), 25.0, (64, 48))
        if not writer.isOpened():
            pytest.skip("this OpenCV build cannot encode mp4v")
        try:
            for index in range(49):
                writer.write(np.full((48, 64, 3), index * 5, dtype=np.uint8))
        finally:
            writer.release()
        info = VideoInfo(width=64, height=48, duration_s=1.96, fps=25.0)
        client = _fake_model(HI_SPAN, "chào")

        with patch(PROBE_TARGET, return_value=info):
            result = run_pipeline(clip, rate=2.0, client=client)

        dialogues = [line for line in result.document.splitlines() if line.startswith("Dialogue:")]
        assert len(dialogues) == 4
        assert dialogues[-1] == "Dialogue: 0,0:00:01.50,0:00:02.00,Default,,0,0,0,,{\\pos(12,23)}chào"

    def test_translation_mismatch_keeps_original_text(self, tmp_path: Path) -> None:
        info = VideoInfo(width=64, height=48, duration_s=1.0)
        two_spans = json.dumps([
            {"text": "OPEN", "boundingBox": {"x": 0, "y": 0, "width": 10, "height": 10}},
            {"text": "SALE", "boundingBox": {"x": 20, "y": 0, "width": 10, "height": 10}},
        ])
        client = _fake_model(two_spans, "only one line")

        with patch(PROBE_TARGET, return_value=info), patch(CAPTURE_TARGET, return_value=_fake_capture()):
            result = run_pipeline(tmp_path / "clip.mp4", rate=2.0, client=client)

        assert [e.text for e in result.events] == ["OPEN", "SALE"] * 3

    def test_no_text_anywhere_yields_header_only(self, tmp_path: Path) -> None:
        info = VideoInfo(width=64, height=48, duration_s=0.5)
        client = _fake_model("[]", "unused")

        with patch(PROBE_TARGET, return_value=info), patch(CAPTURE_TARGET, return_value=_fake_capture()):
            result = run_pipeline(tmp_path / "clip.mp4", client=client)

        assert result.events == []
        assert "Dialogue:" not in result.document
        # Translation short-circuits on empty input: recognition calls only.
        assert client.generate.call_count == 2


class TestStagesAndProgress:
    def test_stage_sequence_and_progress(self, tmp_path: Path) -> None:
        info = VideoInfo(width=64, height=48, duration_s=1.0)
        client = _fake_model(HI_SPAN, "chào")
        stages: list[PipelineStage] = []
        progress: list[float] = []

        with patch(PROBE_TARGET, return_value=info), patch(CAPTURE_TARGET, return_value=_fake_capture()):
            run_pipeline(
                tmp_path / "clip.mp4",
                client=client,
                progress_callback=progress.append,
                stage_callback=stages.append,
            )

        assert stages == [
            PipelineStage.EXTRACTING_FRAMES,
            PipelineStage.ANALYZING_TEXT,
            PipelineStage.TRANSLATING,
            PipelineStage.GENERATING_FILE,
            PipelineStage.DONE,
        ]
        assert progress == sorted(progress)
        assert progress[-1] == pytest.approx(1.0)
        assert pytest.approx(0.2) in progress
        assert pytest.approx(0.7) in progress
        assert pytest.approx(0.85) in progress

    def test_decode_error_is_fatal(self, tmp_path: Path) -> None:
        source = tmp_path / "broken.mp4"
        client = _fake_model(HI_SPAN, "chào")
        stages: list[PipelineStage] = []

        with patch(PROBE_TARGET, side_effect=DecodeError(source, "moov atom not found")):
            with pytest.raises(DecodeError):
                run_pipeline(source, client=client, stage_callback=stages.append)

        assert stages == [PipelineStage.EXTRACTING_FRAMES, PipelineStage.ERROR]
        client.generate.assert_not_called()

    def test_missing_credentials_is_fatal(self, tmp_path: Path, monkeypatch) -> None:
        for name in ("GEMINI_API_KEY", "API_KEY", "GOOGLE_API_KEY"):
            monkeypatch.delenv(name, raising=False)
        reset_client()
        sampled = SampledVideo(frames=[], width=64, height=48, interval_s=0.5)
        stages: list[PipelineStage] = []

        with patch("vidsub.pipeline.sample_frames", return_value=sampled):
            with pytest.raises(ConfigurationError):
                run_pipeline(tmp_path / "clip.mp4", stage_callback=stages.append)

        assert stages[-1] == PipelineStage.ERROR


def test_scaled_progress_maps_into_stage_slice() -> None:
    seen: list[float] = []
    report = scaled_progress(seen.append, PipelineStage.ANALYZING_TEXT)
    report(0.0)
    report(0.5)
    report(1.0)
    report(1.5)
    start, end = STAGE_WEIGHTS[PipelineStage.ANALYZING_TEXT]
    assert seen == [pytest.approx(start), pytest.approx(0.45), pytest.approx(end), pytest.approx(end)]


def test_scaled_progress_without_callback_is_noop() -> None:
    scaled_progress(None, PipelineStage.TRANSLATING)(0.5)
