"""
Shotwright Provider Orchestrator

Decides which backend answers each creative request and falls back to the other one,
at most once, when the first attempt fails.

Features:
- Provider preference (hosted, local, auto) with credential-aware resolution
- Capability routing: image analysis and search grounding go straight to the hosted backend
- Bounded invocations with explicit per-backend outcomes
- Creative operations for the story wizard (shot lists, styles, chat, soundscape...)
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx

from shotwright.core.config import ShotwrightConfig, get_config, parse_preference
from shotwright.core.constants import ProviderChoice, ProviderPreference
from shotwright.core.credentials import CredentialStore
from shotwright.core.exceptions import (
    BackendTimeoutError,
    CapabilityNotSupportedError,
    ConfigurationError,
    ProviderExhaustedError,
    ShotwrightError,
)
from shotwright.core.logging_config import get_logger
from shotwright.models import (
    ChatMessage,
    DirectorVision,
    Shot,
    ShotListResult,
    ShotSoundDesign,
    Story,
    with_shot_ids,
)

from . import prompts
from .api_clients import (
    BackendClient,
    CreativeRequest,
    CreativeResult,
    HostedBackend,
    ProgressCallback,
)
from .context import ProviderContext
from .local_backend import LocalBackend, LocalBackendLoader, PipelineFactory

logger = get_logger("llm.orchestrator")


@dataclass
class BackendOutcome:
    """Result of one backend attempt: a result, an error, or a skip."""
    provider: ProviderChoice
    result: Optional[CreativeResult] = None
    error: Optional[ShotwrightError] = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.result is not None

    def describe(self) -> str:
        reason = self.error.message if self.error is not None else "no result"
        return f"skipped ({reason})" if self.skipped else reason


@dataclass
class ConnectionReport:
    """Outcome of a connectivity check."""
    success: bool
    message: str
    provider: ProviderChoice
    model: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "provider": self.provider.value,
            "model": self.model,
        }


class ProviderOrchestrator:
    """
    Routes creative requests between the hosted and local backends.

    The orchestrator owns the ProviderContext; the prober and the loader receive the
    same instance.

    Creative operations return just the payload. `last_used_provider` is shared by
    concurrent requests, so callers that need to know which backend answered build
    the request with `prompts` and call execute(); the CreativeResult carries its own
    provider and model.
    """

    def __init__(
        self,
        config: Optional[ShotwrightConfig] = None,
        credentials: Optional[CredentialStore] = None,
        context: Optional[ProviderContext] = None,
        hosted: Optional[BackendClient] = None,
        local: Optional[BackendClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        pipeline_factory: Optional[PipelineFactory] = None
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Configuration (defaults to the process-wide config)
            credentials: Credential source (defaults to one built from the hosted config)
            context: Shared provider state (a fresh one by default)
            hosted: Hosted backend override
            local: Local backend override
            transport: httpx transport for the hosted client
            pipeline_factory: Coroutine building the local pipeline
        """
        self.config = config or get_config()
        self.context = context or ProviderContext(preference=self.config.preference)
        self.credentials = credentials or CredentialStore.from_hosted_config(self.config.hosted)
        self.hosted = hosted or HostedBackend(
            self.config.hosted, self.credentials, self.context, transport=transport
        )
        self.local = local or LocalBackend(
            LocalBackendLoader(self.config.local, self.context, pipeline_factory)
        )

    # ------------------------------------------------------------------
    # Preference
    # ------------------------------------------------------------------

    @property
    def preference(self) -> ProviderPreference:
        return self.context.preference

    def set_preference(self, preference: Union[ProviderPreference, str]) -> None:
        if not isinstance(preference, ProviderPreference):
            preference = parse_preference(preference)
        self.context.preference = preference
        logger.info(f"Provider preference set to {preference.value}")

    @property
    def last_used_provider(self) -> Optional[ProviderChoice]:
        return self.context.last_used_provider

    def _backend(self, choice: ProviderChoice) -> BackendClient:
        return self.hosted if choice is ProviderChoice.HOSTED else self.local

    # ------------------------------------------------------------------
    # Provider resolution
    # ------------------------------------------------------------------

    def determine_provider(self) -> ProviderChoice:
        """Resolve the preference against credentials and local readiness."""
        preference = self.context.preference
        hosted_usable = self.hosted.is_usable()

        if preference is ProviderPreference.EXPLICIT_HOSTED:
            if not hosted_usable:
                logger.warning("Hosted provider selected but no API key is configured, using local model")
                return ProviderChoice.LOCAL
            return ProviderChoice.HOSTED

        if preference is ProviderPreference.EXPLICIT_LOCAL:
            return ProviderChoice.LOCAL

        if self.local.is_ready():
            return ProviderChoice.LOCAL
        if hosted_usable:
            return ProviderChoice.HOSTED
        return ProviderChoice.LOCAL

    async def _attempt(
        self,
        backend: BackendClient,
        request: CreativeRequest,
        on_progress: Optional[ProgressCallback]
    ) -> BackendOutcome:
        try:
            if not backend.is_ready():
                await backend.prepare(on_progress)
            result = await asyncio.wait_for(backend.invoke(request), timeout=backend.timeout)
        except asyncio.TimeoutError:
            error = BackendTimeoutError(backend.provider.value, backend.timeout)
            return BackendOutcome(backend.provider, error=error)
        except ShotwrightError as e:
            return BackendOutcome(backend.provider, error=e)
        return BackendOutcome(backend.provider, result=result)

    def _succeed(self, outcome: BackendOutcome) -> CreativeResult:
        self.context.last_used_provider = outcome.provider
        logger.info(f"✓ {outcome.result.kind.value} result from {outcome.provider.value} ({outcome.result.model})")
        return outcome.result

    async def execute(
        self,
        request: CreativeRequest,
        on_progress: Optional[ProgressCallback] = None
    ) -> CreativeResult:
        """
        Run a request on the resolved backend, falling back to the other one once.

        Raises:
            MissingCredentialsError: if no backend could even be attempted
            ProviderExhaustedError: if every attempted backend failed
        """
        choice = self.determine_provider()
        self.context.last_used_provider = choice
        capability = request.capability
        logger.info(f"🎬 {request.task.value} → {choice.value}")

        outcomes: List[BackendOutcome] = []
        primary = self._backend(choice)
        if primary.supports(capability):
            outcome = await self._attempt(primary, request, on_progress)
            if outcome.ok:
                return self._succeed(outcome)
            logger.warning(f"⚠️ {choice.value} failed for {request.task.value}: {outcome.error}")
            outcomes.append(outcome)
        else:
            logger.info(f"{choice.value} backend cannot do {capability.value}, routing to {choice.other.value}")
            outcomes.append(BackendOutcome(
                choice,
                error=CapabilityNotSupportedError(choice.value, capability.value),
                skipped=True
            ))

        alternate = self._backend(choice.other)
        if not alternate.supports(capability):
            outcomes.append(BackendOutcome(
                alternate.provider,
                error=CapabilityNotSupportedError(alternate.provider.value, capability.value),
                skipped=True
            ))
        elif not alternate.is_usable():
            reason = alternate.unusable_reason()
            if all(o.skipped for o in outcomes) and isinstance(reason, ConfigurationError):
                logger.error(f"No backend can serve {request.task.value}: {reason.message}")
                raise reason
            outcomes.append(BackendOutcome(alternate.provider, error=reason, skipped=True))
        else:
            if not outcomes[-1].skipped:
                logger.info(f"🔄 Falling back to {alternate.provider.value}")
            outcome = await self._attempt(alternate, request, on_progress)
            if outcome.ok:
                return self._succeed(outcome)
            logger.warning(f"⚠️ {alternate.provider.value} failed for {request.task.value}: {outcome.error}")
            outcomes.append(outcome)

        attempts = [(o.provider.value, o.describe()) for o in outcomes]
        logger.error(f"❌ All providers failed for {request.task.value}")
        last_error = next((o.error for o in reversed(outcomes) if not o.skipped), None)
        raise ProviderExhaustedError(request.task.value, attempts) from last_error

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    async def initialize_ai(self, on_progress: Optional[ProgressCallback] = None) -> ProviderChoice:
        """Warm up the resolved provider: load the local model, or find a working hosted model."""
        choice = self.determine_provider()
        backend = self._backend(choice)
        if not backend.is_ready():
            await backend.prepare(on_progress)
        return choice

    async def test_connection(self, on_progress: Optional[ProgressCallback] = None) -> ConnectionReport:
        """Check the resolved provider end to end. Failures are reported, not raised."""
        choice = self.determine_provider()
        self.context.last_used_provider = choice
        backend = self._backend(choice)
        try:
            model = await backend.health_check(on_progress)
        except ShotwrightError as e:
            logger.error(f"Connection test failed for {choice.value}: {e.message}")
            return ConnectionReport(False, e.message, choice, self.context.cached_working_model or "")
        return ConnectionReport(True, "Connection successful!", choice, model)

    def get_provider_info(self) -> Dict[str, Any]:
        last_used = self.context.last_used_provider
        return {
            "hosted": self.hosted.describe(),
            "local": self.local.describe(),
            "preference": self.context.preference.value,
            "resolved": self.determine_provider().value,
            "last_used": last_used.value if last_used else None,
        }

    # ------------------------------------------------------------------
    # Creative operations
    # ------------------------------------------------------------------

    async def generate_shots_from_script(
        self,
        script: str,
        director_instructions: str = "",
        vision: Optional[DirectorVision] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> ShotListResult:
        """Extract a title, logline and shot list from a script."""
        result = await self.execute(
            prompts.shot_list_request(script, director_instructions, vision), on_progress
        )
        return result.payload

    async def suggest_styles_from_script(
        self,
        script: str,
        on_progress: Optional[ProgressCallback] = None
    ) -> List[DirectorVision]:
        result = await self.execute(prompts.style_request(script), on_progress)
        return list(result.payload.styles)

    async def analyze_image_style(self, image: bytes, mime_type: str = "image/jpeg") -> DirectorVision:
        """Derive a director's vision from a reference image. Hosted only."""
        result = await self.execute(prompts.image_style_request(image, mime_type))
        return result.payload

    async def generate_chat_response(
        self,
        history: Sequence[ChatMessage],
        on_progress: Optional[ProgressCallback] = None
    ) -> str:
        result = await self.execute(prompts.chat_request(history), on_progress)
        return result.payload

    async def get_suggestion_for_field(
        self,
        field: str,
        story: Story,
        on_progress: Optional[ProgressCallback] = None
    ) -> str:
        result = await self.execute(prompts.field_suggestion_request(field, story), on_progress)
        return result.payload

    async def generate_soundscape(
        self,
        story: Story,
        vision: DirectorVision,
        shots: Sequence[Shot],
        on_progress: Optional[ProgressCallback] = None
    ) -> List[ShotSoundDesign]:
        result = await self.execute(
            prompts.soundscape_request(story, vision, with_shot_ids(shots)), on_progress
        )
        return list(result.payload.soundscape)

    async def get_initial_scene(
        self,
        story: Story,
        vision: DirectorVision,
        emotional_core: str,
        on_progress: Optional[ProgressCallback] = None
    ) -> List[Shot]:
        result = await self.execute(
            prompts.initial_scene_request(story, vision, emotional_core), on_progress
        )
        return list(result.payload.shots)

    async def get_shot_details(
        self,
        story: Story,
        vision: DirectorVision,
        shot_description: str,
        emotional_core: str,
        on_progress: Optional[ProgressCallback] = None
    ) -> Shot:
        result = await self.execute(
            prompts.shot_details_request(story, vision, shot_description, emotional_core), on_progress
        )
        return result.payload

    async def get_director_note_suggestion(
        self,
        story: Story,
        vision: DirectorVision,
        shot: Shot,
        emotional_core: str,
        on_progress: Optional[ProgressCallback] = None
    ) -> str:
        result = await self.execute(
            prompts.director_note_request(story, vision, shot, emotional_core), on_progress
        )
        return result.payload

    async def make_prompt_cinematic(
        self,
        prompt: str,
        on_progress: Optional[ProgressCallback] = None
    ) -> str:
        result = await self.execute(prompts.cinematic_prompt_request(prompt), on_progress)
        return result.payload

    async def enrich_with_search(self, subject: str, existing_description: str = "") -> str:
        """Expand a description with real-world details found by Google Search. Hosted only."""
        result = await self.execute(prompts.search_enrichment_request(subject, existing_description))
        return result.payload
