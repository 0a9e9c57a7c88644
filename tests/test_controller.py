"""
Tests for notestudio/pipeline/controller.py

The services are in-memory fakes (see conftest.py); each test drives the
controller with asyncio.run.

Run with: pytest tests/test_controller.py -v
"""

import asyncio
import json

import pytest

from notestudio.config import StudioConfig, UploadConfig
from notestudio.data.schema import AudioUpload, GenerationParams
from notestudio.editor.note_store import counter_ids
from notestudio.errors import AnalysisError, GenerationError
from notestudio.pipeline.controller import PipelineController
from notestudio.pipeline.state import Stage
from tests.conftest import (
    ANALYSIS_PAYLOAD,
    GENERATION_PAYLOAD,
    FakeAnalysisService,
    FakeGenerationService,
    GatedService,
    StepClock,
)

SECOND_PAYLOAD = {"notes": [{"pitch": 72, "velocity": 70, "start_time": 0.0, "end_time": 4.0}]}


def make_controller(analysis=None, generation=None, config=None):
    return PipelineController(
        analysis or FakeAnalysisService(),
        generation or FakeGenerationService(),
        config=config,
        clock=StepClock(),
    )


def analyzed(controller, upload):
    outcome = asyncio.run(controller.submit_audio(upload))
    assert outcome.ok
    return controller


class TestSubmitAudio:
    def test_success(self, wav_upload):
        analysis = FakeAnalysisService()
        controller = make_controller(analysis=analysis)
        outcome = asyncio.run(controller.submit_audio(wav_upload))
        assert outcome.ok
        assert outcome.value.key == "A minor"
        assert controller.stage is Stage.ANALYZED
        assert controller.state.audio.filename == "take1.wav"
        assert analysis.calls == [wav_upload.data]

    def test_unsupported_type_never_calls_service(self):
        analysis = FakeAnalysisService()
        controller = make_controller(analysis=analysis)
        upload = AudioUpload(filename="a.flac", content_type="audio/flac", data=b"fLaC")
        outcome = asyncio.run(controller.submit_audio(upload))
        assert outcome.error.kind == "validation"
        assert controller.stage is Stage.IDLE
        assert controller.state.error.kind == "validation"
        assert analysis.calls == []

    def test_oversize_file_rejected(self, wav_upload):
        analysis = FakeAnalysisService()
        config = StudioConfig(upload=UploadConfig(max_bytes=4))
        controller = make_controller(analysis=analysis, config=config)
        outcome = asyncio.run(controller.submit_audio(wav_upload))
        assert "too large" in outcome.error.message
        assert analysis.calls == []

    def test_service_failure_returns_to_idle(self, wav_upload):
        controller = make_controller(analysis=FakeAnalysisService(error=ConnectionError("refused")))
        outcome = asyncio.run(controller.submit_audio(wav_upload))
        assert isinstance(outcome.error, AnalysisError)
        assert "refused" in outcome.error.message
        assert controller.stage is Stage.IDLE
        assert controller.state.audio is None

    def test_malformed_response(self, wav_upload):
        controller = make_controller(analysis=FakeAnalysisService(payload={"tempo": "fast"}))
        outcome = asyncio.run(controller.submit_audio(wav_upload))
        assert outcome.error.kind == "analysis"
        assert "malformed" in outcome.error.message
        assert controller.stage is Stage.IDLE

    def test_reupload_after_generation(self, wav_upload):
        controller = analyzed(make_controller(), wav_upload)
        asyncio.run(controller.generate())
        asyncio.run(controller.submit_audio(wav_upload))
        assert controller.stage is Stage.ANALYZED
        assert controller.state.generation is None
        assert len(controller.history) == 1


class TestGenerate:
    def test_before_analysis(self):
        generation = FakeGenerationService()
        controller = make_controller(generation=generation)
        outcome = asyncio.run(controller.generate())
        assert outcome.error.kind == "user_input"
        assert controller.stage is Stage.IDLE
        assert generation.calls == []

    def test_success_records_history(self, wav_upload):
        generation = FakeGenerationService()
        controller = analyzed(make_controller(generation=generation), wav_upload)
        outcome = asyncio.run(controller.generate(GenerationParams(num_steps=256, temperature=0.9)))
        assert outcome.ok
        assert len(outcome.value.notes) == 3
        assert controller.stage is Stage.GENERATED
        assert generation.calls == [{"num_steps": 256, "temperature": 0.9, "model_name": "melody"}]
        entry = controller.history.latest
        assert entry.params.num_steps == 256
        assert entry.timestamp.hour == 12

    def test_uses_config_defaults(self, wav_upload):
        generation = FakeGenerationService()
        config = StudioConfig(generation=GenerationParams(num_steps=64))
        controller = analyzed(make_controller(generation=generation, config=config), wav_upload)
        asyncio.run(controller.generate())
        assert generation.calls[0]["num_steps"] == 64

    def test_mapping_params(self, wav_upload):
        generation = FakeGenerationService()
        controller = analyzed(make_controller(generation=generation), wav_upload)
        outcome = asyncio.run(controller.generate({"numSteps": 64, "modelName": "Drums"}))
        assert outcome.ok
        assert generation.calls[0]["model_name"] == "drums"

    def test_invalid_mapping_params(self, wav_upload):
        generation = FakeGenerationService()
        controller = analyzed(make_controller(generation=generation), wav_upload)
        outcome = asyncio.run(controller.generate({"temperature": 3.0}))
        assert outcome.error.kind == "validation"
        assert controller.stage is Stage.ANALYZED
        assert generation.calls == []

    def test_seed_from_detected_notes(self, wav_upload):
        generation = FakeGenerationService()
        controller = analyzed(make_controller(generation=generation), wav_upload)
        asyncio.run(controller.generate(use_detected_notes=True))
        assert generation.calls[0]["seed_notes"] == ANALYSIS_PAYLOAD["detected_notes"]

    def test_failure_from_analyzed(self, wav_upload):
        generation = FakeGenerationService(GenerationError("model unavailable"))
        controller = analyzed(make_controller(generation=generation), wav_upload)
        outcome = asyncio.run(controller.generate())
        assert outcome.error.message == "model unavailable"
        assert controller.stage is Stage.ANALYZED
        assert len(controller.history) == 0

    def test_failure_keeps_previous_result(self, wav_upload):
        generation = FakeGenerationService(GENERATION_PAYLOAD, RuntimeError("timeout"))
        controller = analyzed(make_controller(generation=generation), wav_upload)
        asyncio.run(controller.generate())
        outcome = asyncio.run(controller.generate())
        assert outcome.error.kind == "generation"
        assert controller.stage is Stage.GENERATED
        assert len(controller.state.generation.notes) == 3
        assert len(controller.history) == 1

    def test_history_in_call_order(self, wav_upload):
        generation = FakeGenerationService(GENERATION_PAYLOAD, SECOND_PAYLOAD)
        controller = analyzed(make_controller(generation=generation), wav_upload)
        asyncio.run(controller.generate(GenerationParams(model_name="melody")))
        asyncio.run(controller.generate(GenerationParams(model_name="performance")))
        entries = controller.history.entries
        assert [e.params.model_name for e in entries] == ["melody", "performance"]
        assert entries[0].timestamp < entries[1].timestamp
        assert controller.state.generation.total_time == 4.0

    def test_malformed_response(self, wav_upload):
        generation = FakeGenerationService({"notes": [{"pitch": 500, "start_time": 0, "end_time": 1}]})
        controller = analyzed(make_controller(generation=generation), wav_upload)
        outcome = asyncio.run(controller.generate())
        assert "malformed" in outcome.error.message
        assert controller.stage is Stage.ANALYZED


class TestBusy:
    """Only one request may be in flight; new triggers are refused, not queued."""

    def test_upload_while_analyzing(self, wav_upload):
        async def scenario():
            gated = GatedService(ANALYSIS_PAYLOAD)
            controller = make_controller(analysis=gated)
            first = asyncio.create_task(controller.submit_audio(wav_upload))
            await asyncio.sleep(0)
            assert controller.is_busy
            second = await controller.submit_audio(wav_upload)
            gated.gate.set()
            return controller, gated, await first, second

        controller, gated, first, second = asyncio.run(scenario())
        assert first.ok
        assert second.error.kind == "busy"
        assert gated.calls == 1
        assert controller.stage is Stage.ANALYZED

    def test_generate_while_generating(self, wav_upload):
        async def scenario():
            gated = GatedService(GENERATION_PAYLOAD)
            controller = make_controller(generation=gated)
            await controller.submit_audio(wav_upload)
            first = asyncio.create_task(controller.generate())
            await asyncio.sleep(0)
            assert controller.stage is Stage.GENERATING
            second = await controller.generate()
            reset = controller.reset()
            gated.gate.set()
            return controller, gated, await first, second, reset

        controller, gated, first, second, reset = asyncio.run(scenario())
        assert first.ok
        assert second.error.kind == "busy"
        assert reset.error.kind == "busy"
        assert gated.calls == 1
        assert len(controller.history) == 1


class TestCancellation:
    """Cancelling the awaiting task releases the busy stage."""

    def test_cancel_analysis(self, wav_upload):
        async def scenario():
            controller = make_controller(analysis=GatedService(ANALYSIS_PAYLOAD))
            task = asyncio.create_task(controller.submit_audio(wav_upload))
            await asyncio.sleep(0)
            assert controller.stage is Stage.UPLOADED
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return controller

        controller = asyncio.run(scenario())
        assert controller.stage is Stage.IDLE
        assert controller.state.audio is None
        assert controller.state.error.message == "Analysis was cancelled"

        controller.analysis_service = FakeAnalysisService()
        assert asyncio.run(controller.submit_audio(wav_upload)).ok

    def test_cancel_generation(self, wav_upload):
        async def scenario():
            controller = make_controller(generation=GatedService(GENERATION_PAYLOAD))
            await controller.submit_audio(wav_upload)
            task = asyncio.create_task(controller.generate())
            await asyncio.sleep(0)
            assert controller.stage is Stage.GENERATING
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return controller

        controller = asyncio.run(scenario())
        assert controller.stage is Stage.ANALYZED
        assert controller.state.error.kind == "generation"
        assert len(controller.history) == 0
        assert controller.reset().ok


class TestExportAndEditor:
    def test_export_before_generation(self, wav_upload, tmp_path):
        controller = analyzed(make_controller(), wav_upload)
        outcome = controller.export(tmp_path)
        assert outcome.error.kind == "user_input"
        assert list(tmp_path.iterdir()) == []

    def test_export_writes_latest_result(self, wav_upload, tmp_path):
        controller = analyzed(make_controller(), wav_upload)
        asyncio.run(controller.generate())
        outcome = controller.export(tmp_path)
        assert outcome.ok
        # one clock tick for the history entry, the next for the file name
        assert outcome.value.name == "generated_music_1704110401000.json"
        data = json.loads(outcome.value.read_text())
        assert len(data["notes"]) == 3
        assert controller.stage is Stage.GENERATED

    def test_export_custom_name(self, wav_upload, tmp_path):
        controller = analyzed(make_controller(), wav_upload)
        asyncio.run(controller.generate())
        outcome = controller.export(tmp_path / "out", filename="take1.json")
        assert outcome.value == tmp_path / "out" / "take1.json"

    def test_open_in_editor_rounds_tempo(self, wav_upload):
        controller = analyzed(make_controller(), wav_upload)
        asyncio.run(controller.generate())
        session = controller.open_in_editor(id_factory=counter_ids()).unwrap()
        assert session.tempo == 119
        assert [n.id for n in session.notes] == ["note-1", "note-2", "note-3"]
        assert [n.pitch for n in session.notes] == [60, 64, 67]

    def test_open_in_editor_clamps_tempo(self, wav_upload):
        payload = dict(ANALYSIS_PAYLOAD, tempo=412.0)
        controller = analyzed(make_controller(analysis=FakeAnalysisService(payload=payload)), wav_upload)
        asyncio.run(controller.generate())
        assert controller.open_in_editor().unwrap().tempo == 300

    def test_open_in_editor_without_generation(self):
        assert controller_error_kind(make_controller().open_in_editor()) == "user_input"


class TestHousekeeping:
    def test_dismiss_error(self):
        controller = make_controller()
        asyncio.run(controller.generate())
        assert controller.state.error is not None
        controller.dismiss_error()
        assert controller.state.error is None
        assert controller.stage is Stage.IDLE

    def test_reset_clears_everything(self, wav_upload):
        controller = analyzed(make_controller(), wav_upload)
        asyncio.run(controller.generate())
        outcome = controller.reset()
        assert outcome.ok
        assert controller.stage is Stage.IDLE
        assert controller.state.analysis is None
        assert len(controller.history) == 0


def controller_error_kind(outcome):
    return outcome.error.kind if outcome.error is not None else None
