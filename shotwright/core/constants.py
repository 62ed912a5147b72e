"""
Shotwright Constants

Provider enums, creative task identifiers and the fixed cinematography option sets
that structured shot output is validated against.
"""

from enum import Enum
from typing import Tuple

# =============================================================================
# VERSION INFO
# =============================================================================
VERSION = "1.0.0"
PROJECT_NAME = "Shotwright"

# =============================================================================
# PROVIDERS
# =============================================================================

class ProviderPreference(str, Enum):
    """User-selected backend preference for the session."""
    EXPLICIT_HOSTED = "hosted"
    EXPLICIT_LOCAL = "local"
    AUTO = "auto"


class ProviderChoice(str, Enum):
    """Backend resolved for one specific request."""
    HOSTED = "hosted"
    LOCAL = "local"

    @property
    def other(self) -> "ProviderChoice":
        return ProviderChoice.LOCAL if self is ProviderChoice.HOSTED else ProviderChoice.HOSTED


class Capability(str, Enum):
    """Kinds of generation a backend may support."""
    STRUCTURED = "generate_structured"
    TEXT = "generate_text"
    IMAGE_ANALYSIS = "analyze_image"
    SEARCH_GROUNDED = "search_grounded"


class CreativeTask(str, Enum):
    """Creative requests the orchestrator can serve."""
    SCRIPT_TO_SHOTLIST = "script_to_shotlist"
    STYLE_SUGGESTION = "style_suggestion"
    IMAGE_STYLE_ANALYSIS = "image_style_analysis"
    FREE_TEXT_CHAT = "free_text_chat"
    FIELD_SUGGESTION = "field_suggestion"
    SOUNDSCAPE = "soundscape"
    INITIAL_SCENE = "initial_scene"
    SHOT_DETAILS = "shot_details"
    DIRECTOR_NOTE = "director_note"
    CINEMATIC_PROMPT = "cinematic_prompt"
    SEARCH_ENRICHMENT = "search_enrichment"


SUGGESTION_FIELDS = ("logline", "character", "setting")

# =============================================================================
# HOSTED BACKEND DEFAULTS
# =============================================================================

HOSTED_PROVIDER_NAME = "gemini"
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

# Most capable first; the prober accepts the first one that answers.
DEFAULT_MODEL_CANDIDATES: Tuple[str, ...] = (
    "gemini-3.0-pro",
    "gemini-3.0-flash",
    "gemini-2.5-pro",
    "gemini-2.5-flash",
    "gemini-2.0-flash-exp",
    "gemini-1.5-pro",
    "gemini-1.5-pro-latest",
    "gemini-1.5-flash",
    "gemini-1.5-flash-latest",
    "gemini-1.5-flash-8b",
    "gemini-1.0-pro",
)

PROBE_PROMPT = "Test connection. Reply with 'OK'."

# =============================================================================
# LOCAL BACKEND DEFAULTS
# =============================================================================

DEFAULT_LOCAL_MODEL = "MBZUAI/LaMini-Flan-T5-783M"
DEFAULT_LOCAL_TASK = "text2text-generation"

# =============================================================================
# CINEMATOGRAPHY OPTION SETS
# =============================================================================

SHOT_TYPES: Tuple[str, ...] = (
    "Extreme Wide Shot", "Wide Shot", "Full Shot", "Medium Shot",
    "Close-up", "Extreme Close-up", "POV Shot",
)

CAMERA_ANGLES: Tuple[str, ...] = (
    "Eye-Level", "High-Angle", "Low-Angle", "Dutch Angle",
    "Over-the-Shoulder", "Bird's-Eye View",
)

CAMERA_MOVEMENTS: Tuple[str, ...] = (
    "Vertigo Boom (Y-Axis Boom + Counter-Zoom for reality warping)",
    "Pendulum Guillotine (Arcing movement for 'ego death')",
    "Probe Whip (Z-Axis Push + Pan, for intimacy-to-violence flip)",
    "Wire-Cam Curtain (Vertical slide through environment for revelation)",
    "Drop-Drutch (Drone drop + Dutch tilt for humiliation)",
    "360-Hand-Eclipse (Rotational track around hands for compassion)",
    "Micro-Heartbeat (Micro Z-axis pulse for tension)",
    "Static",
    "Pan",
    "Tilt",
    "Dolly In/Out",
    "Trucking",
    "Handheld",
    "Steadicam",
    "Crane/Jib",
)

FOCAL_LENGTHS: Tuple[str, ...] = (
    "14-20mm (Ultra-Wide: Hubris, immersive depth, making subjects feel small)",
    "24-35mm (Wide: Kinetic realism, naturalistic feel)",
    "50-60mm (Standard: Mythic portraiture, human eye perspective)",
    "85-100mm (Telephoto: Obsession, compressed background)",
    "135mm+ (Extreme Telephoto: Fate, God's POV, psychological flattening)",
)

APERTURES: Tuple[str, ...] = (
    "f/1.4 (Very Shallow)", "f/2.8 (Shallow)", "f/5.6 (Moderate)",
    "f/11 (Deep)", "f/22 (Very Deep)",
)

LIGHTING_STYLES: Tuple[str, ...] = (
    "High-Key", "Low-Key", "Natural Light", "Golden Hour", "Blue Hour",
    "Rembrandt", "Split Lighting", "Backlight/Silhouette",
)

COLOR_GRADES: Tuple[str, ...] = (
    "Teal & Orange",
    "Vintage/Sepia",
    "Bleach Bypass",
    "Saturated & Vibrant",
    "Desaturated/Muted",
    "Noir (B&W)",
    "Cyberpunk (Neon)",
    "Wong Kar-wai Inspired (Neon & Shadow)",
    "Monochrome with Accent Color",
)

COMPOSITIONS: Tuple[str, ...] = (
    "Rule of Thirds",
    "Golden Ratio",
    "Leading Lines",
    "Symmetry",
    "Frame within a Frame",
    "Negative Space",
    "Layered Depth (Foreground Obstruction)",
    "Diagonal Energy Lines",
    "Unbalanced / Asymmetrical",
)
