"""Manual voice overrides layered on top of automatic assignment."""

import logging
from datetime import datetime, timezone
from typing import Any, get_args

from pydantic import ValidationError

from story_narrator.models import Result, VoiceAdjustments, VoiceAssignment, VoiceProfile
from story_narrator.models.characters import PITCH_RANGE, SPEED_RANGE, Tone
from story_narrator.voices.assigner import clamp

logger = logging.getLogger(__name__)

SETTINGS_VERSION = "1.0"

# An adjustment of 1.0 moves pitch by half a unit and speed by 0.3
PITCH_SCALE = 0.5
SPEED_SCALE = 0.3

DELTA_RANGE = (-1.0, 1.0)
UNIT_RANGE = (0.0, 1.0)


class VoiceCustomizer:
    """
    Keeps per-character voice overrides for one project.

    Usage:
        customizer = VoiceCustomizer()
        result = customizer.customize("Alice", profile, VoiceAdjustments(pitch=0.2))
        customizer.reset_to_default("Alice")
    """

    def __init__(self):
        self._custom: dict[str, VoiceProfile] = {}
        self._defaults: dict[str, VoiceProfile] = {}
        self._adjustments: dict[str, VoiceAdjustments] = {}

    def validate_adjustments(self, adjustments: VoiceAdjustments) -> Result[bool]:
        """Reject adjustments outside their allowed ranges."""
        problems: list[str] = []
        for field, bounds in (
            ("pitch", DELTA_RANGE),
            ("speed", DELTA_RANGE),
            ("emphasis", UNIT_RANGE),
            ("clarity", UNIT_RANGE),
        ):
            value = getattr(adjustments, field)
            if value is not None and not bounds[0] <= value <= bounds[1]:
                problems.append(f"{field} must be between {bounds[0]} and {bounds[1]}")

        if adjustments.tone is not None and adjustments.tone not in get_args(Tone):
            problems.append(f"tone must be one of: {', '.join(get_args(Tone))}")

        if problems:
            return Result.fail("Invalid adjustments: " + "; ".join(problems))
        return Result.ok(True)

    def apply_adjustments(
        self, profile: VoiceProfile, adjustments: VoiceAdjustments
    ) -> Result[VoiceProfile]:
        """A copy of ``profile`` with the adjustments applied and clamped."""
        validation = self.validate_adjustments(adjustments)
        if not validation.success:
            return Result.fail(validation.error or "Invalid adjustments")

        update: dict[str, Any] = {}
        if adjustments.pitch is not None:
            update["pitch"] = clamp(profile.pitch + adjustments.pitch * PITCH_SCALE, PITCH_RANGE)
        if adjustments.speed is not None:
            update["speed"] = clamp(profile.speed + adjustments.speed * SPEED_SCALE, SPEED_RANGE)
        if adjustments.tone is not None:
            update["tone"] = adjustments.tone
        if not profile.id.endswith("-custom"):
            update["id"] = f"{profile.id}-custom"

        return Result.ok(profile.model_copy(update=update), adjusted=sorted(update))

    def customize(
        self, character: str, profile: VoiceProfile, adjustments: VoiceAdjustments
    ) -> Result[VoiceProfile]:
        """Apply adjustments to a character's voice and remember the result."""
        result = self.apply_adjustments(profile, adjustments)
        if not result.success:
            return result

        self._defaults.setdefault(character, profile)
        self._adjustments[character] = adjustments
        self.save_custom_voice(character, result.data)
        return result

    def apply_to_assignments(
        self,
        assignments: list[VoiceAssignment],
        overrides: dict[str, VoiceAdjustments],
    ) -> Result[list[VoiceAssignment]]:
        """Apply per-character overrides to a batch of assignments."""
        updated: list[VoiceAssignment] = []
        for assignment in assignments:
            adjustments = overrides.get(assignment.character)
            if adjustments is None:
                updated.append(assignment)
                continue

            result = self.customize(assignment.character, assignment.voice, adjustments)
            if not result.success:
                return Result.fail(f"{assignment.character}: {result.error}")
            updated.append(assignment.model_copy(update={"voice": result.data}))
            logger.info("Applied voice override for %s", assignment.character)

        return Result.ok(updated, overridden=len(overrides))

    def save_custom_voice(self, character: str, profile: VoiceProfile) -> Result[bool]:
        self._custom[character] = profile
        return Result.ok(True)

    def get_custom_voices(self) -> Result[dict[str, VoiceProfile]]:
        return Result.ok(dict(self._custom))

    def reset_to_default(self, character: str) -> Result[VoiceProfile]:
        """Drop a character's override and return the voice it started from."""
        if character not in self._custom:
            return Result.fail(f"No custom voice for {character}")

        self._custom.pop(character)
        self._adjustments.pop(character, None)
        default = self._defaults.pop(character, None)
        if default is None:
            return Result.fail(f"No default voice recorded for {character}")
        return Result.ok(default)

    def export_settings(self) -> Result[dict[str, Any]]:
        """All overrides as a JSON-compatible dict."""
        return Result.ok({
            "version": SETTINGS_VERSION,
            "exported_at": datetime.now(timezone.utc).isoformat(),
            "custom_voices": {name: p.model_dump() for name, p in self._custom.items()},
            "defaults": {name: p.model_dump() for name, p in self._defaults.items()},
            "adjustments": {
                name: a.model_dump(exclude_none=True) for name, a in self._adjustments.items()
            },
        })

    def import_settings(self, data: dict[str, Any]) -> Result[int]:
        """Replace current overrides with exported ones. Returns the number imported."""
        if data.get("version") != SETTINGS_VERSION:
            return Result.fail(f"Unsupported settings version: {data.get('version')}")

        try:
            custom = {
                name: VoiceProfile.model_validate(p)
                for name, p in data.get("custom_voices", {}).items()
            }
            defaults = {
                name: VoiceProfile.model_validate(p)
                for name, p in data.get("defaults", {}).items()
            }
            adjustments = {
                name: VoiceAdjustments.model_validate(a)
                for name, a in data.get("adjustments", {}).items()
            }
        except ValidationError as e:
            return Result.fail(f"Invalid voice settings: {e.error_count()} error(s)")

        self._custom, self._defaults, self._adjustments = custom, defaults, adjustments
        return Result.ok(len(custom))
