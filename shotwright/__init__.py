"""
Shotwright - multi-provider AI core for a cinematic story wizard

Turns scripts and story notes into shot lists, visual styles, soundscapes and chat
answers, using a hosted Gemini model or an in-process Hugging Face model and falling
back between them.

Version: 1.0.0
"""

__version__ = "1.0.0"
__project__ = "Shotwright"

# Load environment variables before anything reads API keys
from shotwright.core.env_loader import ensure_env_loaded
ensure_env_loaded()

from .llm import ProviderOrchestrator

__all__ = [
    "__version__",
    "__project__",
    "ProviderOrchestrator",
]
