"""
Story Models
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that accepts the camelCase keys backends emit."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        str_min_length=1,
    )


class Character(CamelModel):
    """A named character in the story."""
    name: str
    description: str


class Setting(CamelModel):
    """Where the story takes place."""
    name: str
    description: str


class Story(CamelModel):
    """Story defined in the first wizard step."""
    title: str
    logline: str
    characters: List[Character] = Field(default_factory=list)
    setting: Optional[Setting] = None


class DirectorVision(CamelModel):
    """The director's visual style."""
    genre: str
    tone: str
    color_palette: str
    inspirations: str


class StyleSuggestions(CamelModel):
    """Envelope for style suggestions derived from a script."""
    styles: List[DirectorVision] = Field(min_length=1)


class ChatMessage(CamelModel):
    """One turn in the assistant chat."""
    sender: Literal["user", "gemini"]
    text: str
