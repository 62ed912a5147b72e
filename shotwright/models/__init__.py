"""
Shotwright Models

Validated shapes for every structured result a backend can return.
"""

from .story import CamelModel, Character, ChatMessage, DirectorVision, Setting, Story, StyleSuggestions
from .shots import ShotList, ShotListResult, Shot, ShotSoundDesign, SoundscapeResult, TechnicalSpecs, with_shot_ids

__all__ = [
    'CamelModel',
    'Character',
    'ChatMessage',
    'DirectorVision',
    'Setting',
    'Story',
    'StyleSuggestions',
    'Shot',
    'ShotList',
    'ShotListResult',
    'ShotSoundDesign',
    'SoundscapeResult',
    'TechnicalSpecs',
    'with_shot_ids',
]
