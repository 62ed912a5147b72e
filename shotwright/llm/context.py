"""
Shared provider state.

One ProviderContext is created by the orchestrator and handed to the prober and the
local loader. Each field has a single writer:

- preference, last_used_provider: ProviderOrchestrator
- cached_working_model: ModelAvailabilityProber
- local_status: LocalBackendLoader
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from shotwright.core.constants import ProviderChoice, ProviderPreference


class LoaderState(str, Enum):
    """Lifecycle of the in-process model."""
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass
class BackendStatus:
    """Readiness of the local backend."""
    state: LoaderState = LoaderState.UNINITIALIZED
    error: Optional[str] = None
    model_identifier: str = ""

    @property
    def ready(self) -> bool:
        return self.state is LoaderState.READY

    @property
    def loading(self) -> bool:
        return self.state is LoaderState.LOADING

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "ready": self.ready,
            "loading": self.loading,
            "error": self.error,
            "model": self.model_identifier,
        }


@dataclass
class ProviderContext:
    """Process-wide provider state, passed by reference."""
    preference: ProviderPreference = ProviderPreference.AUTO
    last_used_provider: Optional[ProviderChoice] = None
    cached_working_model: Optional[str] = None
    local_status: BackendStatus = field(default_factory=BackendStatus)
