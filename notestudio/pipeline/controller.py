"""
Pipeline Controller
===================

Drives the upload → analyze → generate → export workflow.

The controller owns the current PipelineState and the two remote services.
Each public method checks whether the trigger is allowed, feeds events to
the pure reducer, and awaits at most one service call. Nothing raises out
of it: every method returns an Outcome, and the state is always one of the
five stages.

    ┌──────┐ submit_audio ┌──────────┐ analysis ok ┌──────────┐ generate ┌────────────┐
    │ idle │─────────────▶│ uploaded │────────────▶│ analyzed │─────────▶│ generating │
    └──────┘              └──────────┘             └──────────┘          └────────────┘
        ▲   analysis failed    │                         ▲   failed (no result yet) │
        └──────────────────────┘                         └──────────────────────────┤
                                                         ┌───────────┐   ok         │
                                              generate ◀─│ generated │◀─────────────┘
                                                         └───────────┘

While a request is in flight (uploaded, generating) every new trigger is
refused with PipelineBusyError. Nothing is queued.

Usage:
    controller = PipelineController(analysis_service, generation_service)

    outcome = await controller.submit_audio(upload)
    if outcome.ok:
        outcome = await controller.generate(GenerationParams(num_steps=256))
    controller.export("exports/")
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError as SchemaError

from notestudio.config import StudioConfig
from notestudio.data.io import export_filename, write_json
from notestudio.data.schema import (
    MAX_TEMPO,
    MIN_TEMPO,
    AnalysisResult,
    AudioUpload,
    GenerationParams,
    GenerationResult,
)
from notestudio.editor.note_store import IdFactory
from notestudio.editor.session import EditorSession
from notestudio.editor.transforms import clamp, round_half_up
from notestudio.errors import (
    AnalysisError,
    ExportError,
    GenerationError,
    Outcome,
    PipelineBusyError,
    StudioError,
    UserInputError,
    ValidationError,
)
from notestudio.pipeline.history import GenerationHistory, HistoryEntry
from notestudio.pipeline.reducer import (
    AnalysisFailed,
    AnalysisSucceeded,
    AudioAccepted,
    AudioRejected,
    ErrorDismissed,
    GenerationFailed,
    GenerationStarted,
    GenerationSucceeded,
    Reset,
    TriggerRejected,
    reduce,
)
from notestudio.pipeline.services import AnalysisService, GenerationService
from notestudio.pipeline.state import AudioRef, ErrorInfo, PipelineState, Stage
from notestudio.pipeline.upload import validate_upload

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_payload(raw: Any) -> Any:
    # services may hand back any Mapping; pydantic wants a dict
    if isinstance(raw, Mapping) and not isinstance(raw, dict):
        return dict(raw)
    return raw


class PipelineController:
    """
    Async state machine around the analysis and generation services.

    Args:
        analysis_service: Implements AnalysisService
        generation_service: Implements GenerationService
        config: Upload limits, default generation params, export directory
        clock: Returns the timestamp recorded in history entries
    """

    def __init__(
        self,
        analysis_service: AnalysisService,
        generation_service: GenerationService,
        config: Optional[StudioConfig] = None,
        clock: Optional[Clock] = None,
    ):
        self.analysis_service = analysis_service
        self.generation_service = generation_service
        self.config = config or StudioConfig()
        self._clock = clock or _utcnow
        self.state = PipelineState()

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def stage(self) -> Stage:
        return self.state.stage

    @property
    def is_busy(self) -> bool:
        return self.state.is_busy

    @property
    def history(self) -> GenerationHistory:
        return self.state.history

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def dispatch(self, event: object) -> PipelineState:
        previous = self.state.stage
        self.state = reduce(self.state, event)
        if self.state.stage != previous:
            logger.info("Pipeline %s -> %s", previous.value, self.state.stage.value)
        return self.state

    def _reject(self, error: StudioError) -> Outcome:
        logger.warning("Rejected (%s): %s", error.kind, error.message)
        self.dispatch(TriggerRejected(ErrorInfo.from_error(error)))
        return Outcome.failure(error)

    def _busy(self) -> Outcome:
        return self._reject(PipelineBusyError(
            f"A request is already in progress (stage: {self.state.stage.value})"
        ))

    # -------------------------------------------------------------------------
    # Step 1 + 2: upload and analyze
    # -------------------------------------------------------------------------

    async def submit_audio(self, upload: AudioUpload) -> Outcome[AnalysisResult]:
        """
        Validate an upload locally, then analyze it.

        An invalid file is reported as ValidationError and never reaches the
        analysis service. A failed analysis returns the pipeline to idle; so
        does cancelling the awaiting task, and the cancellation propagates.
        """
        if self.state.is_busy:
            return self._busy()

        checked = validate_upload(upload, self.config.upload)
        if not checked.ok:
            logger.warning("Upload %s rejected: %s", upload.filename, checked.error)
            self.dispatch(AudioRejected(ErrorInfo.from_error(checked.error)))
            return Outcome.failure(checked.error)

        self.dispatch(AudioAccepted(AudioRef.from_upload(upload)))

        try:
            raw = await self.analysis_service.analyze(upload.data)
            result = AnalysisResult.model_validate(_as_payload(raw))
        except SchemaError as e:
            error = AnalysisError(f"Analysis returned malformed data: {e}")
        except AnalysisError as e:
            error = e
        except Exception as e:
            logger.warning("Analysis service raised", exc_info=True)
            error = AnalysisError(f"Analysis failed: {e}")
        except BaseException:
            # cancelled while in flight: leave the busy stage, then propagate
            logger.warning("Analysis of %s was cancelled", upload.filename)
            cancelled = AnalysisError("Analysis was cancelled")
            self.dispatch(AnalysisFailed(ErrorInfo.from_error(cancelled)))
            raise
        else:
            self.dispatch(AnalysisSucceeded(result))
            logger.info(
                "Analyzed %s: %.1f BPM, %.2fs, key %s",
                upload.filename, result.tempo, result.duration, result.key or "N/A",
            )
            return Outcome.success(result)

        self.dispatch(AnalysisFailed(ErrorInfo.from_error(error)))
        return Outcome.failure(error)

    # -------------------------------------------------------------------------
    # Step 3: generate
    # -------------------------------------------------------------------------

    async def generate(
        self,
        params: Union[GenerationParams, Mapping[str, Any], None] = None,
        use_detected_notes: bool = False,
    ) -> Outcome[GenerationResult]:
        """
        Request a generation.

        Args:
            params: GenerationParams or a mapping of them; None uses the
                    configured defaults
            use_detected_notes: Seed the model with the analysis's detected notes

        A failure leaves the pipeline where it was (analyzed or generated)
        and adds nothing to the history. Cancellation is treated the same
        way before it propagates.
        """
        if self.state.is_busy:
            return self._busy()

        if self.state.stage not in (Stage.ANALYZED, Stage.GENERATED):
            return self._reject(UserInputError("Upload and analyze audio before generating"))

        if params is None:
            params = self.config.generation
        elif not isinstance(params, GenerationParams):
            try:
                params = GenerationParams.model_validate(dict(params))
            except SchemaError as e:
                return self._reject(ValidationError(f"Invalid generation parameters: {e}"))

        if use_detected_notes and self.state.analysis is not None:
            params = params.with_seed_from(self.state.analysis)

        self.dispatch(GenerationStarted(params))

        try:
            raw = await self.generation_service.generate(params.to_payload())
            result = GenerationResult.model_validate(_as_payload(raw))
        except SchemaError as e:
            error = GenerationError(f"Generation returned malformed data: {e}")
        except GenerationError as e:
            error = e
        except Exception as e:
            logger.warning("Generation service raised", exc_info=True)
            error = GenerationError(f"Generation failed: {e}")
        except BaseException:
            logger.warning("Generation was cancelled")
            cancelled = GenerationError("Generation was cancelled")
            self.dispatch(GenerationFailed(ErrorInfo.from_error(cancelled)))
            raise
        else:
            entry = HistoryEntry(timestamp=self._clock(), params=params, result=result)
            self.dispatch(GenerationSucceeded(entry))
            logger.info(
                "Generated %d notes (%.2fs) with %s",
                len(result.notes), result.total_time, params.model_name,
            )
            return Outcome.success(result)

        self.dispatch(GenerationFailed(ErrorInfo.from_error(error)))
        return Outcome.failure(error)

    # -------------------------------------------------------------------------
    # Step 4: export
    # -------------------------------------------------------------------------

    def export(
        self,
        directory: Union[str, Path, None] = None,
        filename: Optional[str] = None,
    ) -> Outcome[Path]:
        """Write the latest generation as JSON; the stage does not change."""
        if self.state.is_busy:
            return self._busy()
        if self.state.stage != Stage.GENERATED or self.state.generation is None:
            return self._reject(UserInputError("Generate music before exporting"))

        directory = Path(directory) if directory is not None else self.config.export.output_dir
        if filename is None:
            filename = export_filename(timestamp_ms=int(self._clock().timestamp() * 1000))

        try:
            path = write_json(self.state.generation, directory / filename)
        except ExportError as e:
            return self._reject(e)
        return Outcome.success(path)

    def open_in_editor(self, id_factory: Optional[IdFactory] = None) -> Outcome[EditorSession]:
        """An EditorSession holding the latest generation, at the analyzed tempo."""
        if self.state.generation is None:
            return self._reject(UserInputError("Generate music before editing it"))

        tempo = None
        if self.state.analysis is not None:
            tempo = clamp(round_half_up(self.state.analysis.tempo), MIN_TEMPO, MAX_TEMPO)

        session = EditorSession.from_generation(
            self.state.generation, tempo=tempo, config=self.config, id_factory=id_factory,
        )
        return Outcome.success(session)

    # -------------------------------------------------------------------------
    # Housekeeping
    # -------------------------------------------------------------------------

    def dismiss_error(self) -> None:
        self.dispatch(ErrorDismissed())

    def reset(self) -> Outcome[PipelineState]:
        """Drop the upload, results and history. Refused while a request is in flight."""
        if self.state.is_busy:
            return self._busy()
        self.dispatch(Reset())
        logger.info("Pipeline reset")
        return Outcome.success(self.state)
