"""
Shot and Soundscape Models

Enumerated cinematography fields must match one of the fixed option sets exactly;
anything else is a validation failure rather than a best guess.
"""

from typing import List, Optional, Sequence

from pydantic import Field, field_validator, model_validator

from shotwright.core.constants import (
    APERTURES,
    CAMERA_ANGLES,
    CAMERA_MOVEMENTS,
    COLOR_GRADES,
    COMPOSITIONS,
    FOCAL_LENGTHS,
    LIGHTING_STYLES,
    SHOT_TYPES,
)

from .story import CamelModel


def _require_option(value: str, options: Sequence[str], label: str) -> str:
    if value not in options:
        raise ValueError(f"{label} '{value}' is not one of: {', '.join(options)}")
    return value


class TechnicalSpecs(CamelModel):
    """Camera, lighting and sound recording notes for a shot."""
    camera: str
    lighting: str
    audio: str


class Shot(CamelModel):
    """A single shot in the shot list."""
    id: Optional[str] = None
    description: str
    character_blocking: str
    shot_type: str
    camera_angle: str
    camera_movement: str
    focal_length: str
    aperture: str
    lighting_style: str
    color_grade: str
    composition: str
    technical_specs: TechnicalSpecs
    director_notes: str

    @field_validator("shot_type")
    @classmethod
    def _check_shot_type(cls, v: str) -> str:
        return _require_option(v, SHOT_TYPES, "shotType")

    @field_validator("camera_angle")
    @classmethod
    def _check_camera_angle(cls, v: str) -> str:
        return _require_option(v, CAMERA_ANGLES, "cameraAngle")

    @field_validator("camera_movement")
    @classmethod
    def _check_camera_movement(cls, v: str) -> str:
        return _require_option(v, CAMERA_MOVEMENTS, "cameraMovement")

    @field_validator("focal_length")
    @classmethod
    def _check_focal_length(cls, v: str) -> str:
        return _require_option(v, FOCAL_LENGTHS, "focalLength")

    @field_validator("aperture")
    @classmethod
    def _check_aperture(cls, v: str) -> str:
        return _require_option(v, APERTURES, "aperture")

    @field_validator("lighting_style")
    @classmethod
    def _check_lighting_style(cls, v: str) -> str:
        return _require_option(v, LIGHTING_STYLES, "lightingStyle")

    @field_validator("color_grade")
    @classmethod
    def _check_color_grade(cls, v: str) -> str:
        return _require_option(v, COLOR_GRADES, "colorGrade")

    @field_validator("composition")
    @classmethod
    def _check_composition(cls, v: str) -> str:
        return _require_option(v, COMPOSITIONS, "composition")


def with_shot_ids(shots: Sequence[Shot]) -> List[Shot]:
    """Give shots without an id a positional one (`shot-1`, `shot-2`, ...)."""
    return [
        shot if shot.id else shot.model_copy(update={"id": f"shot-{index}"})
        for index, shot in enumerate(shots, 1)
    ]


class ShotList(CamelModel):
    """Envelope for a list of shots."""
    shots: List[Shot] = Field(min_length=1)

    @model_validator(mode="after")
    def _number_shots(self) -> "ShotList":
        self.shots = with_shot_ids(self.shots)
        return self


class ShotListResult(CamelModel):
    """Story header plus shot list extracted from a script."""
    title: str
    logline: str
    shots: List[Shot] = Field(min_length=1)

    @model_validator(mode="after")
    def _number_shots(self) -> "ShotListResult":
        self.shots = with_shot_ids(self.shots)
        return self


class ShotSoundDesign(CamelModel):
    """Audio plan for one shot."""
    shot_id: str
    score: str
    sfx: str
    ambience: str


class SoundscapeResult(CamelModel):
    """Envelope for a scene soundscape."""
    soundscape: List[ShotSoundDesign] = Field(min_length=1)
