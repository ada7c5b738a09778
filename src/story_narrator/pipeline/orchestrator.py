"""
Pipeline Orchestrator

Drives a story through segmentation, character detection, voice assignment
and per-segment speech synthesis, publishing progress as it goes and
honouring cancellation at well-defined checkpoints.
"""

import asyncio
import logging
import time
from typing import Any, Optional

from story_narrator.characters import CharacterExtractor
from story_narrator.config import Settings, get_settings
from story_narrator.errors import (
    InputValidationError,
    NarratorError,
    ProcessingCancelled,
    ResolutionError,
)
from story_narrator.models import (
    NARRATOR,
    AudioOutput,
    AudioSegment,
    ProcessingOptions,
    ProcessingStatus,
    Result,
    TextSegment,
    VoiceAssignment,
    VoiceProfile,
)
from story_narrator.pipeline.speech import SpeechProvider
from story_narrator.quality import QualityAnalyzer
from story_narrator.segment import Segmenter
from story_narrator.voices import VoiceAssigner, VoiceCustomizer

logger = logging.getLogger(__name__)

# Cancellation checkpoints
CHECKPOINT_ANALYZING = "analyzing"
CHECKPOINT_DETECTING = "detecting"
CHECKPOINT_ASSIGNING = "assigning"
CHECKPOINT_GENERATING = "generating"
CHECKPOINT_SEGMENT = "segment"
CHECKPOINT_COMBINING = "combining"
CHECKPOINT_QUALITY = "quality_check"
CHECKPOINT_FINALIZING = "finalizing"

# Optimize when there are more segments than this, whatever the format
OPTIMIZE_SEGMENT_THRESHOLD = 5


class PipelineOrchestrator:
    """
    Runs one story at a time through the narration pipeline.

    Usage:
        orchestrator = PipelineOrchestrator(
            Segmenter(), CharacterExtractor(), VoiceAssigner(), SilentSpeechProvider()
        )
        result = await orchestrator.process_story(text, ProcessingOptions(output_format="wav"))

    From another task, ``get_processing_status()`` reports progress and
    ``cancel_processing()`` stops the run at its next checkpoint.
    """

    def __init__(
        self,
        segmenter: Segmenter,
        extractor: CharacterExtractor,
        assigner: VoiceAssigner,
        speech: SpeechProvider,
        quality: Optional[QualityAnalyzer] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.segmenter = segmenter
        self.extractor = extractor
        self.assigner = assigner
        self.speech = speech
        self.quality = quality
        # Overrides from the most recent run; replaced at the start of each run
        self.customizer: Optional[VoiceCustomizer] = None

        self._status = ProcessingStatus()
        self._processing = False
        self._cancel_requested = False

    @property
    def is_processing(self) -> bool:
        return self._processing

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def process_story(
        self, text: str, options: Optional[ProcessingOptions] = None
    ) -> Result[AudioOutput]:
        """Narrate ``text``. Only one run may be in flight per orchestrator."""
        if self._processing:
            return Result.fail("Processing already in progress")

        options = options or ProcessingOptions()
        self._processing = True
        self._cancel_requested = False
        started = time.perf_counter()

        try:
            output = await self._run(text, options)
        except ProcessingCancelled as e:
            logger.info("Processing cancelled")
            self._set_status("error", 0, str(e))
            return Result.fail(str(e))
        except NarratorError as e:
            logger.error("Processing failed: %s", e)
            self._set_status("error", 0, str(e))
            return Result.fail(str(e))
        except Exception as e:
            logger.exception("Processing failed")
            self._set_status("error", 0, f"Processing failed: {e}")
            return Result.fail(f"Processing failed: {e}")
        finally:
            self._processing = False
            self._cancel_requested = False

        output.metadata["processing_time"] = round((time.perf_counter() - started) * 1000)
        self._set_status("complete", 100, "Audio generation complete")
        logger.info(
            "Processed %d segments in %d ms",
            output.metadata["total_segments"],
            output.metadata["processing_time"],
        )
        return Result.ok(output, **output.metadata)

    def get_processing_status(self) -> Result[ProcessingStatus]:
        return Result.ok(self._status.model_copy())

    def cancel_processing(self) -> Result[bool]:
        """Ask the running pipeline to stop at its next checkpoint."""
        if not self._processing:
            return Result.fail("No processing in progress to cancel")

        self._cancel_requested = True
        self._set_status("error", 0, "Processing cancelled by user")
        return Result.ok(True)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _run(self, text: str, options: ProcessingOptions) -> AudioOutput:
        if options.output_format not in self.speech.output_formats:
            raise InputValidationError(
                f"Speech provider cannot produce {options.output_format} audio "
                f"(supported: {', '.join(self.speech.output_formats)})"
            )
        self.customizer = VoiceCustomizer()

        await self._checkpoint(CHECKPOINT_ANALYZING)
        self._set_status("analyzing", 10, "Analyzing text structure")
        segments = _unwrap(self.segmenter.parse(text), "Text analysis failed")
        self._set_status("analyzing", 25, f"Found {len(segments)} segments")

        await self._checkpoint(CHECKPOINT_DETECTING)
        self._set_status("detecting", 40, "Detecting characters")
        characters = _unwrap(self.extractor.detect(segments), "Character detection failed")
        self._set_status("detecting", 55, f"Found {len(characters)} characters")

        await self._checkpoint(CHECKPOINT_ASSIGNING)
        self._set_status("assigning", 70, "Assigning voices")
        assignments = _unwrap(self.assigner.assign(characters), "Voice assignment failed")
        if options.enable_manual_correction and options.voice_overrides:
            assignments = _unwrap(
                self.customizer.apply_to_assignments(assignments, options.voice_overrides),
                "Voice customization failed",
            )
        self._set_status("assigning", 80, f"Assigned {len(assignments)} voices")

        await self._checkpoint(CHECKPOINT_GENERATING)
        audio_segments = await self._generate(segments, assignments)

        await self._checkpoint(CHECKPOINT_COMBINING)
        self._set_status("generating", 95, "Combining audio segments")
        audio = _unwrap(
            await self.speech.combine_audio_segments(audio_segments), "Audio combination failed"
        )

        if options.output_format == "mp3" or len(segments) > OPTIMIZE_SEGMENT_THRESHOLD:
            self._set_status("generating", 98, "Optimizing audio")
            audio = await self._optimize(audio)

        report = None
        if options.include_quality_analysis and self.quality is not None:
            await self._checkpoint(CHECKPOINT_QUALITY)
            self._set_status("quality_check", 99, "Analyzing writing quality")
            quality = await asyncio.to_thread(self.quality.generate_quality_report, text)
            if quality.success:
                report = quality.data
            else:
                logger.warning("Quality report failed: %s", quality.error)

        await self._checkpoint(CHECKPOINT_FINALIZING)

        metadata: dict[str, Any] = {
            "character_count": len(assignments),
            "total_segments": len(segments),
            "duration": round(sum(s.duration for s in audio_segments), 3),
        }
        return AudioOutput(
            audio_data=audio,
            duration=metadata["duration"],
            segments=audio_segments,
            format=options.output_format,
            metadata=metadata,
            quality_report=report,
        )

    async def _generate(
        self, segments: list[TextSegment], assignments: list[VoiceAssignment]
    ) -> list[AudioSegment]:
        voices: dict[str, VoiceProfile] = {a.character: a.voice for a in assignments}
        if NARRATOR not in voices:
            raise ResolutionError("No narrator voice assigned")

        total = len(segments)
        audio_segments: list[AudioSegment] = []
        for index, segment in enumerate(segments):
            await self._checkpoint(CHECKPOINT_SEGMENT)
            self._set_status(
                "generating",
                85 + 10 * index / total,
                f"Generating audio {index + 1}/{total}",
                current_item=segment.id,
            )
            if not segment.content.strip():
                continue

            voice = voices.get(segment.speaker, voices[NARRATOR])
            result = await self.speech.generate_segment_audio(segment, voice)
            if not result.success:
                raise ResolutionError(
                    f"Audio generation failed for segment {segment.id}: {result.error}"
                )
            logger.debug("Generated %s (%s, %.2fs)", segment.id, voice.id, result.data.duration)
            audio_segments.append(result.data)

        if not audio_segments:
            raise ResolutionError("No audio was generated")
        return audio_segments

    async def _optimize(self, audio: bytes) -> bytes:
        """Optimized audio, or ``audio`` unchanged when optimization fails."""
        try:
            optimized = await self.speech.optimize_audio(audio)
        except Exception as e:
            logger.warning("Audio optimization raised, keeping original: %s", e)
            return audio
        if not optimized.success:
            logger.warning("Audio optimization failed, keeping original: %s", optimized.error)
            return audio
        return optimized.data

    async def _checkpoint(self, name: str) -> None:
        # Yield so status polls and cancel requests from other tasks get a turn
        await asyncio.sleep(0)
        if self._cancel_requested:
            logger.debug("Cancellation observed at checkpoint %s", name)
            raise ProcessingCancelled()

    def _set_status(
        self, stage: str, progress: float, message: str, current_item: Optional[str] = None
    ) -> None:
        if stage != "error":
            if stage != self._status.stage:
                logger.info("Stage: %s", stage)
            logger.debug("[%s %.0f%%] %s", stage, progress, message)
        self._status = ProcessingStatus(
            stage=stage, progress=progress, message=message, current_item=current_item
        )


def _unwrap(result: Result, context: str) -> Any:
    if not result.success:
        raise ResolutionError(f"{context}: {result.error}")
    return result.data
