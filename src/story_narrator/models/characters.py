"""Character and voice models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Gender = Literal["male", "female", "neutral"]
Age = Literal["child", "young", "adult", "elderly"]
Tone = Literal["warm", "cold", "neutral", "dramatic"]

PITCH_RANGE = (0.5, 2.0)
SPEED_RANGE = (0.5, 1.5)


class Character(BaseModel):
    """A speaker discovered in the text."""

    name: str
    frequency: int = 0  # number of segments spoken
    characteristics: list[str] = Field(default_factory=list)
    emotional_states: list[str] = Field(default_factory=list)
    is_main_character: bool = False
    first_appearance: int = 0  # segment index

    def add_characteristic(self, label: str) -> None:
        if label not in self.characteristics:
            self.characteristics.append(label)

    def add_emotion(self, label: str) -> None:
        if label not in self.emotional_states:
            self.emotional_states.append(label)


class VoiceProfile(BaseModel):
    """A named bundle of synthesis parameters."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    gender: Gender
    age: Age
    tone: Tone
    pitch: float = Field(ge=PITCH_RANGE[0], le=PITCH_RANGE[1])
    speed: float = Field(ge=SPEED_RANGE[0], le=SPEED_RANGE[1])


class VoiceAssignment(BaseModel):
    """A character paired with the voice that will read its lines."""

    character: str
    voice: VoiceProfile
    confidence: float = Field(ge=0.0, le=1.0)


class VoiceAdjustments(BaseModel):
    """Relative tweaks a user applies to an assigned voice."""

    pitch: float | None = None  # delta in [-1, 1]
    speed: float | None = None  # delta in [-1, 1]
    emphasis: float | None = None  # [0, 1]
    clarity: float | None = None  # [0, 1]
    tone: str | None = None  # checked against Tone by the customizer
