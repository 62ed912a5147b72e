"""
Shotwright LLM Module

Generative backends and the orchestrator that routes creative requests between them.
Supports: Google Gemini (hosted), Hugging Face text2text models (in-process)
"""

# Shared state
from .context import BackendStatus, LoaderState, ProviderContext

# Backends
from .api_clients import (
    BackendClient,
    CreativeRequest,
    CreativeResult,
    GeminiClient,
    HostedBackend,
    ResultKind,
    TextResponse,
    encode_image,
    parse_structured,
)
from .local_backend import LocalBackend, LocalBackendLoader, load_transformers_pipeline
from .model_prober import ModelAvailabilityProber

# Orchestration
from .orchestrator import BackendOutcome, ConnectionReport, ProviderOrchestrator

__all__ = [
    'BackendStatus',
    'LoaderState',
    'ProviderContext',
    'BackendClient',
    'CreativeRequest',
    'CreativeResult',
    'GeminiClient',
    'HostedBackend',
    'ResultKind',
    'TextResponse',
    'encode_image',
    'parse_structured',
    'LocalBackend',
    'LocalBackendLoader',
    'load_transformers_pipeline',
    'ModelAvailabilityProber',
    'BackendOutcome',
    'ConnectionReport',
    'ProviderOrchestrator',
]
