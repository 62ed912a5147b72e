"""
Pytest Configuration and Fixtures

Shared fixtures for all tests.
"""

import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pytest

from shotwright.core.config import HostedConfig, LocalConfig, ShotwrightConfig
from shotwright.core.constants import (
    APERTURES,
    CAMERA_ANGLES,
    CAMERA_MOVEMENTS,
    COLOR_GRADES,
    COMPOSITIONS,
    FOCAL_LENGTHS,
    LIGHTING_STYLES,
    SHOT_TYPES,
    Capability,
    ProviderChoice,
)
from shotwright.core.credentials import CredentialStore
from shotwright.core.exceptions import LocalBackendError, MissingCredentialsError
from shotwright.llm.api_clients import BackendClient, CreativeRequest, CreativeResult, ResultKind
from shotwright.llm.context import ProviderContext
from shotwright.models import DirectorVision, Story

# Environment variable used for the hosted key in tests, so a developer's real
# GEMINI_API_KEY or .env never leaks into a test run.
TEST_KEY_ENV = "SHOTWRIGHT_TEST_GEMINI_KEY"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def key_env() -> str:
    """Name of the environment variable holding the hosted key in tests."""
    return TEST_KEY_ENV


@pytest.fixture
def credentials(monkeypatch) -> CredentialStore:
    """Credential store with no hosted key configured."""
    monkeypatch.delenv(TEST_KEY_ENV, raising=False)
    return CredentialStore({"gemini": [TEST_KEY_ENV]})


@pytest.fixture
def config() -> ShotwrightConfig:
    """Configuration with two candidates and short timeouts."""
    return ShotwrightConfig(
        hosted=HostedConfig(
            api_key_env=TEST_KEY_ENV,
            alt_api_key_envs=[],
            base_url="https://gemini.test/v1beta",
            model_candidates=["model-a", "model-b"],
            request_timeout=5.0,
            probe_timeout=1.0,
        ),
        local=LocalConfig(model_id="test/tiny-t5", max_new_tokens=64, inference_timeout=5.0),
    )


@pytest.fixture
def context() -> ProviderContext:
    return ProviderContext()


@pytest.fixture
def shot_payload() -> Dict[str, Any]:
    """A valid shot as a backend would emit it (camelCase keys)."""
    return {
        "description": "Mara steps onto the rooftop as the storm breaks.",
        "characterBlocking": "Mara center frame, back to camera.",
        "shotType": SHOT_TYPES[1],
        "cameraAngle": CAMERA_ANGLES[2],
        "cameraMovement": CAMERA_MOVEMENTS[0],
        "focalLength": FOCAL_LENGTHS[0],
        "aperture": APERTURES[1],
        "lightingStyle": LIGHTING_STYLES[1],
        "colorGrade": COLOR_GRADES[0],
        "composition": COMPOSITIONS[0],
        "technicalSpecs": {
            "camera": "Arri Alexa Mini, 18mm",
            "lighting": "Single hard key from lightning flashes",
            "audio": "Wind and rain close-miked",
        },
        "directorNotes": "WHY: isolation. HOW: low wide angle. FEEL: dread.",
    }


@pytest.fixture
def shot_list_payload(shot_payload) -> Dict[str, Any]:
    return {
        "title": "Storm Rooftop",
        "logline": "A courier must deliver one last message before the city floods.",
        "shots": [shot_payload, dict(shot_payload, id="custom-id")],
    }


@pytest.fixture
def sample_story() -> Story:
    return Story(
        title="Storm Rooftop",
        logline="A courier must deliver one last message before the city floods.",
        characters=[{"name": "Mara", "description": "A tireless courier"}],
        setting={"name": "Drowned City", "description": "Neon towers above black water"},
    )


@pytest.fixture
def sample_vision() -> DirectorVision:
    return DirectorVision(
        genre="Neo-noir",
        tone="Melancholic",
        color_palette="Teal shadows, sodium orange highlights",
        inspirations="Blade Runner, In the Mood for Love",
    )


class FakeBackend(BackendClient):
    """
    Scriptable backend for orchestrator tests.

    Each entry in `responses` is consumed per invoke(): an Exception is raised,
    anything else is returned as the payload of a CreativeResult.
    """

    def __init__(
        self,
        provider: ProviderChoice,
        responses: Optional[List[Union[Any, Exception]]] = None,
        usable: bool = True,
        ready: bool = True,
        capabilities=None,
        prepare_error: Optional[Exception] = None
    ):
        self.provider = provider
        self.responses = list(responses or [])
        self.usable = usable
        self.ready = ready
        self.capabilities = frozenset(capabilities or {Capability.STRUCTURED, Capability.TEXT})
        self.prepare_error = prepare_error
        self.invocations: List[CreativeRequest] = []
        self.prepare_calls = 0
        self.timeout = 5.0

    def is_usable(self) -> bool:
        return self.usable

    def unusable_reason(self):
        if self.provider is ProviderChoice.HOSTED:
            return MissingCredentialsError("gemini", [TEST_KEY_ENV])
        return LocalBackendError("model failed to load (boom)")

    def is_ready(self) -> bool:
        return self.ready

    async def prepare(self, on_progress=None) -> None:
        self.prepare_calls += 1
        if self.prepare_error is not None:
            raise self.prepare_error
        self.ready = True

    async def health_check(self, on_progress=None) -> str:
        await self.prepare(on_progress)
        return f"{self.provider.value}-model"

    async def _respond(self, request: CreativeRequest, kind: ResultKind) -> CreativeResult:
        self.invocations.append(request)
        response = self.responses.pop(0) if self.responses else "ok"
        if isinstance(response, Exception):
            raise response
        return CreativeResult(kind, response, self.provider, f"{self.provider.value}-model")

    async def generate_text(self, request: CreativeRequest) -> CreativeResult:
        return await self._respond(request, ResultKind.TEXT)

    async def generate_structured(self, request: CreativeRequest) -> CreativeResult:
        return await self._respond(request, ResultKind.STRUCTURED)

    async def analyze_image(self, request: CreativeRequest) -> CreativeResult:
        return await self._respond(request, ResultKind.STRUCTURED)


@pytest.fixture
def fake_backend():
    """Factory for FakeBackend instances."""
    return FakeBackend
