"""
Shotwright API Clients

Backend contract shared by the hosted and local providers, plus the hosted Gemini
REST client.

Supports:
- Google Gemini (generateContent over HTTPS, via httpx)
- Structured output parsing into pydantic models
"""

from __future__ import annotations

import asyncio
import base64
import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Type

import httpx
from pydantic import BaseModel, ValidationError

from shotwright.core.config import HostedConfig
from shotwright.core.constants import (
    GEMINI_BASE_URL,
    PROBE_PROMPT,
    Capability,
    CreativeTask,
    ProviderChoice,
)
from shotwright.core.credentials import CredentialStore
from shotwright.core.exceptions import (
    BackendError,
    BackendTimeoutError,
    CapabilityNotSupportedError,
    MissingCredentialsError,
    ResponseParseError,
    ShotwrightError,
)
from shotwright.core.logging_config import get_logger

from .context import ProviderContext
from .model_prober import ModelAvailabilityProber

logger = get_logger("llm.api_clients")

# (status message, fraction complete or None when indeterminate)
ProgressCallback = Callable[[str, Optional[float]], None]


# ============================================================================
#  REQUEST / RESULT TYPES
# ============================================================================

class ResultKind(str, Enum):
    STRUCTURED = "structured"
    TEXT = "text"


@dataclass(frozen=True)
class CreativeRequest:
    """
    One unit of creative work.

    `prompt` is the full instruction sent to the hosted model. `compact_prompt`, when
    set, is a shorter variant for the local model's small context window. `use_search`
    asks the hosted model to ground its answer in Google Search results.
    """
    task: CreativeTask
    prompt: str
    schema: Optional[Type[BaseModel]] = None
    compact_prompt: Optional[str] = None
    image: Optional[bytes] = None
    image_mime_type: str = "image/jpeg"
    max_output_tokens: Optional[int] = None
    temperature: Optional[float] = None
    use_search: bool = False

    @property
    def capability(self) -> Capability:
        if self.image is not None:
            return Capability.IMAGE_ANALYSIS
        if self.use_search:
            return Capability.SEARCH_GROUNDED
        if self.schema is not None:
            return Capability.STRUCTURED
        return Capability.TEXT


@dataclass(frozen=True)
class CreativeResult:
    """Validated backend output, tagged with who produced it."""
    kind: ResultKind
    payload: Any
    provider: ProviderChoice
    model: str


@dataclass
class TextResponse:
    """Response from text generation API."""
    text: str
    model: str
    usage: Optional[Dict] = None


# ============================================================================
#  STRUCTURED OUTPUT
# ============================================================================

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def extract_json_text(text: str) -> Optional[str]:
    """Pull the outermost JSON object out of model output, ignoring fences and chatter."""
    cleaned = _FENCE_RE.sub("", text.strip())
    match = _OBJECT_RE.search(cleaned)
    return match.group(0) if match else None


def parse_structured(text: str, schema: Type[BaseModel], provider: str) -> BaseModel:
    """
    Parse and validate backend output against a schema.

    Raises:
        ResponseParseError: if no JSON object is found, it does not decode, or it
            does not validate
    """
    candidate = extract_json_text(text)
    if candidate is None:
        raise ResponseParseError(provider, "no JSON object found in output")

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ResponseParseError(provider, f"invalid JSON: {e.msg} at position {e.pos}") from e

    try:
        return schema.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ResponseParseError(
            provider,
            f"output does not match {schema.__name__} ({e.error_count()} error(s); "
            f"{location}: {first.get('msg')})"
        ) from e


def build_structured_prompt(prompt: str, schema: Type[BaseModel]) -> str:
    """Append the JSON schema the answer must follow."""
    schema_json = json.dumps(schema.model_json_schema(by_alias=True))
    return (
        f"{prompt}\n\n"
        f"Respond with ONLY a JSON object matching this JSON schema, no prose:\n{schema_json}"
    )


def encode_image(image_path: Path) -> Tuple[bytes, str]:
    """Read an image file and guess its mime type from the suffix."""
    image_path = Path(image_path)
    if not image_path.exists():
        raise FileNotFoundError(f"Image not found: {image_path}")
    mime_types = {
        ".jpg": "image/jpeg", ".jpeg": "image/jpeg",
        ".png": "image/png", ".webp": "image/webp"
    }
    return image_path.read_bytes(), mime_types.get(image_path.suffix.lower(), "image/jpeg")


# ============================================================================
#  BACKEND CONTRACT
# ============================================================================

class BackendClient(ABC):
    """Common interface the orchestrator drives both providers through."""

    provider: ProviderChoice
    display_name: str = "Backend"
    capabilities: frozenset = frozenset()
    timeout: float = 120.0

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    @abstractmethod
    def is_usable(self) -> bool:
        """Whether an invocation could be attempted right now."""

    @abstractmethod
    def unusable_reason(self) -> ShotwrightError:
        """Error describing why is_usable() is False."""

    def is_ready(self) -> bool:
        """Whether invoke() can run without a preparation step."""
        return True

    async def prepare(self, on_progress: Optional[ProgressCallback] = None) -> None:
        """Bring the backend to a ready state."""

    @abstractmethod
    async def health_check(self, on_progress: Optional[ProgressCallback] = None) -> str:
        """Verify the backend end to end and return the model identifier in use."""

    @abstractmethod
    async def generate_text(self, request: CreativeRequest) -> CreativeResult:
        pass

    @abstractmethod
    async def generate_structured(self, request: CreativeRequest) -> CreativeResult:
        pass

    async def analyze_image(self, request: CreativeRequest) -> CreativeResult:
        raise CapabilityNotSupportedError(self.provider.value, Capability.IMAGE_ANALYSIS.value)

    def describe(self) -> Dict[str, Any]:
        return {"available": self.is_usable(), "description": self.display_name}

    async def invoke(self, request: CreativeRequest) -> CreativeResult:
        """Dispatch a request to the method matching its capability."""
        capability = request.capability
        if not self.supports(capability):
            raise CapabilityNotSupportedError(self.provider.value, capability.value)
        if capability is Capability.IMAGE_ANALYSIS:
            return await self.analyze_image(request)
        if capability is Capability.STRUCTURED:
            return await self.generate_structured(request)
        return await self.generate_text(request)


# ============================================================================
#  GEMINI CLIENT
# ============================================================================

class GeminiClient:
    """Client for the Google Gemini REST API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = GEMINI_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not api_key:
            raise ValueError(f"{self.__class__.__name__} requires an API key")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    def _get_headers(self) -> Dict:
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key
        }

    async def _post(self, model: str, body: Dict, timeout: Optional[float]) -> Dict:
        url = f"{self.base_url}/models/{model}:generateContent"
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=timeout) as client:
                response = await client.post(url, headers=self._get_headers(), json=body)
        except httpx.TimeoutException as e:
            raise BackendTimeoutError("gemini", timeout or 0) from e
        except httpx.HTTPError as e:
            raise BackendError("gemini", f"request to {model} failed: {e}") from e

        if response.status_code >= 400:
            raise BackendError("gemini", f"HTTP {response.status_code} from {model}: {response.text[:300]}")

        try:
            return response.json()
        except ValueError as e:
            raise BackendError("gemini", f"non-JSON response from {model}") from e

    @staticmethod
    def _extract_text(result: Dict, model: str) -> str:
        feedback = result.get("promptFeedback") or {}
        if feedback.get("blockReason"):
            raise BackendError("gemini", f"prompt blocked ({feedback['blockReason']})")

        candidates = result.get("candidates", [])
        if not candidates:
            raise BackendError("gemini", f"no candidates returned by {model}")

        text = ""
        for part in candidates[0].get("content", {}).get("parts", []):
            if "text" in part:
                text += part["text"]
        if not text.strip():
            reason = candidates[0].get("finishReason", "unknown")
            raise BackendError("gemini", f"empty response from {model} (finishReason={reason})")
        return text

    def _generation_config(
        self,
        temperature: Optional[float],
        max_tokens: Optional[int],
        json_output: bool
    ) -> Dict:
        config: Dict[str, Any] = {}
        if temperature is not None:
            config["temperature"] = temperature
        if max_tokens is not None:
            config["maxOutputTokens"] = max_tokens
        if json_output:
            config["responseMimeType"] = "application/json"
        return config

    async def generate_text(
        self,
        prompt: str,
        model: str,
        temperature: Optional[float] = 0.7,
        max_tokens: Optional[int] = 8192,
        json_output: bool = False,
        timeout: Optional[float] = None,
        search: bool = False
    ) -> TextResponse:
        """Generate text using Gemini, optionally grounded with the Google Search tool."""
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": self._generation_config(temperature, max_tokens, json_output)
        }
        if search:
            body["tools"] = [{"google_search": {}}]
        result = await self._post(model, body, timeout)
        return TextResponse(
            text=self._extract_text(result, model),
            model=model,
            usage=result.get("usageMetadata")
        )

    async def analyze_image(
        self,
        image: bytes,
        prompt: str,
        model: str,
        mime_type: str = "image/jpeg",
        json_output: bool = True,
        timeout: Optional[float] = None
    ) -> TextResponse:
        """Analyze an image using Gemini vision."""
        data_b64 = base64.b64encode(image).decode("ascii")
        body = {
            "contents": [{
                "parts": [
                    {"inline_data": {"mime_type": mime_type, "data": data_b64}},
                    {"text": prompt}
                ]
            }],
            "generationConfig": self._generation_config(0.1 if json_output else 0.7, 4096, json_output)
        }
        result = await self._post(model, body, timeout)
        return TextResponse(
            text=self._extract_text(result, model),
            model=model,
            usage=result.get("usageMetadata")
        )

    async def ping(self, model: str, timeout: Optional[float] = None) -> None:
        """Issue a trivial call; raises if the model does not accept it."""
        body = {"contents": [{"parts": [{"text": PROBE_PROMPT}]}]}
        await self._post(model, body, timeout)


# ============================================================================
#  HOSTED BACKEND
# ============================================================================

class HostedBackend(BackendClient):
    """Remote provider: Gemini behind a model availability prober."""

    provider = ProviderChoice.HOSTED
    display_name = "Gemini API"
    capabilities = frozenset(Capability)

    def __init__(
        self,
        config: HostedConfig,
        credentials: CredentialStore,
        context: ProviderContext,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config
        self.credentials = credentials
        self.timeout = config.request_timeout
        self._transport = transport
        self.prober = ModelAvailabilityProber(config.model_candidates, self._ping, context)

    def is_usable(self) -> bool:
        return self.credentials.has_api_key(self.config.provider_name)

    def unusable_reason(self) -> ShotwrightError:
        return MissingCredentialsError(
            self.config.provider_name,
            self.credentials.env_keys_for(self.config.provider_name)
        )

    def _client(self) -> GeminiClient:
        api_key = self.credentials.get_api_key(self.config.provider_name)
        if not api_key:
            raise self.unusable_reason()
        return GeminiClient(api_key, base_url=self.config.base_url, transport=self._transport)

    async def _ping(self, model: str) -> None:
        await self._client().ping(model, timeout=self.config.probe_timeout)

    def is_ready(self) -> bool:
        return self.prober.cached_model is not None

    async def prepare(self, on_progress: Optional[ProgressCallback] = None) -> None:
        """Resolve a working model ahead of the bounded invocation."""
        self._client()
        await self.prober.find_working_model()

    async def _call(self, request: CreativeRequest, json_output: bool) -> TextResponse:
        client = self._client()
        model = await self.prober.find_working_model()
        try:
            if request.image is not None:
                response = await client.analyze_image(
                    request.image,
                    build_structured_prompt(request.prompt, request.schema) if request.schema else request.prompt,
                    model,
                    mime_type=request.image_mime_type,
                    json_output=json_output,
                    timeout=self.config.request_timeout
                )
            else:
                prompt = build_structured_prompt(request.prompt, request.schema) if json_output else request.prompt
                response = await client.generate_text(
                    prompt,
                    model,
                    temperature=request.temperature if request.temperature is not None else self.config.temperature,
                    max_tokens=request.max_output_tokens or self.config.max_output_tokens,
                    json_output=json_output,
                    timeout=self.config.request_timeout,
                    search=request.use_search
                )
        except (BackendError, asyncio.CancelledError):
            # Cancellation here means the caller's time budget ran out on this model
            self.prober.invalidate(model)
            raise
        logger.debug(f"{request.task.value} on {model}, usage: {response.usage}")
        return response

    async def generate_text(self, request: CreativeRequest) -> CreativeResult:
        response = await self._call(request, json_output=False)
        return CreativeResult(ResultKind.TEXT, response.text.strip(), self.provider, response.model)

    async def generate_structured(self, request: CreativeRequest) -> CreativeResult:
        response = await self._call(request, json_output=True)
        payload = parse_structured(response.text, request.schema, self.provider.value)
        return CreativeResult(ResultKind.STRUCTURED, payload, self.provider, response.model)

    async def analyze_image(self, request: CreativeRequest) -> CreativeResult:
        response = await self._call(request, json_output=request.schema is not None)
        if request.schema is None:
            return CreativeResult(ResultKind.TEXT, response.text.strip(), self.provider, response.model)
        payload = parse_structured(response.text, request.schema, self.provider.value)
        return CreativeResult(ResultKind.STRUCTURED, payload, self.provider, response.model)

    async def health_check(self, on_progress: Optional[ProgressCallback] = None) -> str:
        self._client()
        return await self.prober.find_working_model()

    async def probe_models(self) -> Dict[str, Optional[str]]:
        """Availability of every candidate model."""
        self._client()
        return await self.prober.probe_all()

    def describe(self) -> Dict[str, Any]:
        info = super().describe()
        info.update({
            "cached_model": self.prober.cached_model,
            "candidates": list(self.prober.candidates),
        })
        return info
