"""
Voice Assignment

Deterministically map each character to a voice profile. Gender comes from
the name, age from characteristics and tone from emotional states; the
best-matching template is then nudged per character and kept unique within
the run.
"""

import logging
import re
from typing import Optional

from story_narrator.config import Settings, get_settings
from story_narrator.errors import NarratorError, ResolutionError
from story_narrator.models import NARRATOR, Character, Result, VoiceAssignment, VoiceProfile
from story_narrator.models.characters import PITCH_RANGE, SPEED_RANGE
from story_narrator.tables import load_table

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.7
NARRATOR_BONUS = 0.25
GENDER_BONUS = 0.1
MAIN_CHARACTER_BONUS = 0.1
FREQUENT_BONUS = 0.05
FREQUENT_THRESHOLD = 5


def clamp(value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return round(max(low, min(high, value)), 3)


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "character"


class VoiceAssigner:
    """
    Assigns a unique voice to every character.

    Usage:
        assigner = VoiceAssigner()
        result = assigner.assign(characters)
        for assignment in result.data:
            print(assignment.character, assignment.voice.id, assignment.confidence)
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        table = load_table("voices", self.settings.tables_dir)

        self.templates = [VoiceProfile(**template) for template in table["templates"]]
        self.narrator_voice = next(
            t for t in self.templates if t.id == table["narrator_template"]
        )

        self.female_names = {n.lower() for n in table["names"]["female"]}
        self.male_names = {n.lower() for n in table["names"]["male"]}
        self.female_endings = tuple(table["female_name_endings"])

        self.age_keywords: dict[str, list[str]] = table["age_keywords"]
        self.tone_keywords: dict[str, list[str]] = table["tone_keywords"]
        self.pitch_deltas: dict[str, float] = table["pitch_deltas"]
        self.speed_deltas: dict[str, float] = table["speed_deltas"]
        self.alternative_perturbation = table["alternative_perturbation"]

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def assign(self, characters: list[Character]) -> Result[list[VoiceAssignment]]:
        """Assign voices to the whole roster, or fail the batch."""
        try:
            assignments = self.assign_all(characters)
        except NarratorError as e:
            return Result.fail(str(e))

        return Result.ok(
            assignments,
            total_assignments=len(assignments),
            unique_voices=len({a.voice.id for a in assignments}),
            average_confidence=sum(a.confidence for a in assignments) / len(assignments),
        )

    def generate_profile(self, character: Character) -> Result[VoiceProfile]:
        """Voice profile for a single character, before uniqueness is enforced."""
        try:
            return Result.ok(self.build_profile(character))
        except NarratorError as e:
            return Result.fail(str(e))

    def validate(self, assignments: list[VoiceAssignment]) -> Result[bool]:
        """Check a batch of assignments for the invariants every run must hold."""
        try:
            self.check(assignments)
        except ResolutionError as e:
            return Result.fail(str(e))
        return Result.ok(True, total_assignments=len(assignments))

    # ------------------------------------------------------------------
    # Core algorithm (raises)
    # ------------------------------------------------------------------

    def assign_all(self, characters: list[Character]) -> list[VoiceAssignment]:
        if not characters:
            raise ResolutionError("No characters to assign voices to")

        ordered = sorted(characters, key=lambda c: (not c.is_main_character, -c.frequency))
        used: set[str] = set()
        assignments: list[VoiceAssignment] = []

        for character in ordered:
            try:
                voice = self.build_profile(character)
            except NarratorError as e:
                raise ResolutionError(
                    f"Failed to generate voice for character: {character.name}"
                ) from e

            if voice.id in used:
                voice = self.find_alternative(voice, used, narrator=character.name == NARRATOR)
            used.add(voice.id)

            assignments.append(VoiceAssignment(
                character=character.name,
                voice=voice,
                confidence=self.confidence(character, voice),
            ))

        try:
            self.check(assignments)
        except ResolutionError as e:
            raise ResolutionError(f"Voice assignment validation failed: {e}") from e

        logger.debug("Assigned %d voices", len(assignments))
        return assignments

    def build_profile(self, character: Character) -> VoiceProfile:
        if character.name == NARRATOR:
            return self.narrator_voice

        gender = self.infer_gender(character.name)
        age = self.infer_age(character.characteristics)
        tone = self.infer_tone(character.emotional_states)
        template = self.select_template(gender, age, tone)

        emotions = {e.lower() for e in character.emotional_states}
        pitch = template.pitch + sum(d for e, d in self.pitch_deltas.items() if e in emotions)
        speed = template.speed + sum(d for e, d in self.speed_deltas.items() if e in emotions)

        return template.model_copy(update={
            "id": f"{slugify(character.name)}-voice",
            "name": f"{character.name} Voice",
            "pitch": clamp(pitch, PITCH_RANGE),
            "speed": clamp(speed, SPEED_RANGE),
        })

    def infer_gender(self, name: str) -> str:
        tokens = [t.lower() for t in re.findall(r"[A-Za-z]+", name)]
        for token in tokens:
            if token in self.female_names:
                return "female"
            if token in self.male_names:
                return "male"
        if tokens and tokens[0].endswith(self.female_endings):
            return "female"
        return "neutral"

    def infer_age(self, characteristics: list[str]) -> str:
        labels = {c.lower() for c in characteristics}
        for age, keywords in self.age_keywords.items():
            if labels.intersection(keywords):
                return age
        return "adult"

    def infer_tone(self, emotional_states: list[str]) -> str:
        labels = {e.lower() for e in emotional_states}
        for tone, keywords in self.tone_keywords.items():
            if labels.intersection(keywords):
                return tone
        return "neutral"

    def select_template(self, gender: str, age: str, tone: str) -> VoiceProfile:
        """Best template: exact gender and age first, then neutral/adult fallbacks."""
        candidates = [t for t in self.templates if t.gender == gender and t.age == age]
        if not candidates:
            candidates = [
                t for t in self.templates
                if t.gender in (gender, "neutral") and t.age in (age, "adult")
            ]

        if candidates:
            same_tone = [t for t in candidates if t.tone == tone]
            return (same_tone or candidates)[0]

        return next((t for t in self.templates if t.gender == gender), self.templates[0])

    def find_alternative(
        self, voice: VoiceProfile, used: set[str], narrator: bool = False
    ) -> VoiceProfile:
        """An unused voice close to ``voice``."""
        pool = [
            t for t in self.templates
            if t.id not in used and (narrator or "narrator" not in t.id)
        ]
        for template in pool:
            if template.gender == voice.gender and template.age == voice.age:
                return template
        if pool:
            return pool[0]

        alt_id = f"{voice.id}-alt"
        while alt_id in used:
            alt_id += "-alt"
        return voice.model_copy(update={
            "id": alt_id,
            "pitch": clamp(voice.pitch + self.alternative_perturbation["pitch"], PITCH_RANGE),
            "speed": clamp(voice.speed + self.alternative_perturbation["speed"], SPEED_RANGE),
        })

    def confidence(self, character: Character, voice: VoiceProfile) -> float:
        score = BASE_CONFIDENCE
        if character.name == NARRATOR and "narrator" in voice.id:
            score += NARRATOR_BONUS
        if voice.gender == "neutral" or voice.gender == self.infer_gender(character.name):
            score += GENDER_BONUS
        if character.is_main_character:
            score += MAIN_CHARACTER_BONUS
        if character.frequency > FREQUENT_THRESHOLD:
            score += FREQUENT_BONUS
        return round(min(1.0, score), 3)

    def check(self, assignments: list[VoiceAssignment]) -> None:
        voice_ids = [a.voice.id for a in assignments]
        if len(set(voice_ids)) != len(voice_ids):
            raise ResolutionError("Duplicate voice assignments detected")

        for assignment in assignments:
            if not 0.0 <= assignment.confidence <= 1.0:
                raise ResolutionError(
                    f"Invalid confidence score for character: {assignment.character}"
                )

        narrator = next((a for a in assignments if a.character == NARRATOR), None)
        if narrator and "narrator" not in narrator.voice.id:
            raise ResolutionError("Narrator assigned non-narrator voice")

        cast = [a for a in assignments if a.character != NARRATOR]
        if len(cast) > 2 and len({(a.voice.gender, a.voice.age) for a in cast}) == 1:
            raise ResolutionError("Insufficient voice diversity among main characters")
