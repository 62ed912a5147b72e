"""
Shotwright Local Backend

In-process text2text model. Loading is slow and happens once; every caller waiting on
a load in progress shares the same attempt.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

from shotwright.core.config import LocalConfig
from shotwright.core.constants import Capability, ProviderChoice
from shotwright.core.exceptions import BackendError, LocalBackendError, ShotwrightError
from shotwright.core.logging_config import get_logger

from .api_clients import (
    BackendClient,
    CreativeRequest,
    CreativeResult,
    ProgressCallback,
    ResultKind,
    parse_structured,
)
from .context import BackendStatus, LoaderState, ProviderContext

logger = get_logger("llm.local")

PipelineFactory = Callable[[LocalConfig, ProgressCallback], Awaitable[Any]]


async def load_transformers_pipeline(config: LocalConfig, report: ProgressCallback) -> Any:
    """Download the model weights and build a transformers pipeline."""
    from huggingface_hub import snapshot_download
    from transformers import pipeline

    report(f"Downloading {config.model_id}...", 0.0)
    model_path = await asyncio.to_thread(snapshot_download, repo_id=config.model_id)

    report("Loading model into memory...", 0.6)
    generator = await asyncio.to_thread(
        pipeline, config.task, model=model_path, tokenizer=model_path
    )
    return generator


class LocalBackendLoader:
    """
    Owns the local model lifecycle.

    UNINITIALIZED -> LOADING -> READY | ERROR. ERROR is sticky until reset().
    """

    def __init__(
        self,
        config: LocalConfig,
        context: ProviderContext,
        pipeline_factory: Optional[PipelineFactory] = None
    ):
        self.config = config
        self._context = context
        self._factory = pipeline_factory or load_transformers_pipeline
        self._generator: Any = None
        self._task: Optional[asyncio.Task] = None
        self._sinks: List[ProgressCallback] = []
        self._context.local_status.model_identifier = config.model_id

    @property
    def status(self) -> BackendStatus:
        return self._context.local_status

    @property
    def model_identifier(self) -> str:
        return self.config.model_id

    def _report(self, stage: str, progress: Optional[float]) -> None:
        for sink in list(self._sinks):
            try:
                sink(stage, progress)
            except Exception as e:
                logger.warning(f"Progress callback raised: {e}")

    async def initialize(self, on_progress: Optional[ProgressCallback] = None) -> None:
        """
        Load the model if needed.

        Returns immediately when READY. Concurrent callers during LOADING await the
        same load and receive its outcome.

        Raises:
            LocalBackendError: if the load fails, or failed earlier and was not reset
        """
        status = self._context.local_status
        if status.state is LoaderState.READY:
            return
        if status.state is LoaderState.ERROR:
            raise LocalBackendError(f"model failed to load earlier ({status.error}); reset() to retry")

        if on_progress is not None:
            self._sinks.append(on_progress)

        if status.state is LoaderState.LOADING and self._task is not None:
            logger.debug("Local model load already in progress, waiting")
            await asyncio.shield(self._task)
            return

        status.state = LoaderState.LOADING
        status.error = None
        logger.info(f"🤖 Loading local model {self.config.model_id}")
        self._task = asyncio.ensure_future(self._load())
        await asyncio.shield(self._task)

    async def _load(self) -> None:
        status = self._context.local_status
        try:
            generator = await self._factory(self.config, self._report)
        except asyncio.CancelledError:
            status.state = LoaderState.UNINITIALIZED
            self._sinks.clear()
            raise
        except Exception as e:
            status.state = LoaderState.ERROR
            status.error = str(e) or e.__class__.__name__
            logger.error(f"Local model failed to load: {status.error}")
            self._report(f"Failed to load model: {status.error}", None)
            self._sinks.clear()
            raise LocalBackendError(f"failed to load {self.config.model_id}: {status.error}") from e

        self._generator = generator
        status.state = LoaderState.READY
        logger.info(f"✅ Local model ready: {self.config.model_id}")
        self._report("Model ready!", 1.0)
        self._sinks.clear()

    def reset(self) -> None:
        """Return to UNINITIALIZED so the next initialize() retries."""
        status = self._context.local_status
        if status.state is LoaderState.LOADING:
            raise LocalBackendError("cannot reset while the model is loading")
        status.state = LoaderState.UNINITIALIZED
        status.error = None
        self._generator = None
        self._task = None

    async def generate(self, prompt: str, max_new_tokens: Optional[int] = None) -> str:
        """
        Run inference and return the continuation with any echoed prompt removed.

        Raises:
            LocalBackendError: if the model is not READY or inference fails
        """
        if not self.status.ready or self._generator is None:
            raise LocalBackendError("model is not initialized")

        limit = min(max_new_tokens, self.config.max_new_tokens) if max_new_tokens else self.config.max_new_tokens
        try:
            outputs = await asyncio.to_thread(
                self._generator,
                prompt,
                max_new_tokens=limit,
                do_sample=True,
                temperature=self.config.temperature,
                top_p=self.config.top_p,
            )
        except Exception as e:
            raise LocalBackendError(f"inference failed: {e}") from e

        try:
            text = str(outputs[0]["generated_text"])
        except (KeyError, IndexError, TypeError) as e:
            raise LocalBackendError("unexpected pipeline output") from e

        if text.startswith(prompt):
            text = text[len(prompt):]
        return text.strip()


class LocalBackend(BackendClient):
    """Provider backed by the in-process model. No image analysis."""

    provider = ProviderChoice.LOCAL
    display_name = "Local model (Transformers)"
    capabilities = frozenset({Capability.STRUCTURED, Capability.TEXT})

    def __init__(self, loader: LocalBackendLoader):
        self.loader = loader
        self.timeout = loader.config.inference_timeout

    def is_usable(self) -> bool:
        return self.loader.status.state is not LoaderState.ERROR

    def unusable_reason(self) -> ShotwrightError:
        return LocalBackendError(f"model failed to load ({self.loader.status.error})")

    def is_ready(self) -> bool:
        return self.loader.status.ready

    async def prepare(self, on_progress: Optional[ProgressCallback] = None) -> None:
        await self.loader.initialize(on_progress)

    async def health_check(self, on_progress: Optional[ProgressCallback] = None) -> str:
        await self.loader.initialize(on_progress)
        return self.loader.model_identifier

    async def generate_text(self, request: CreativeRequest) -> CreativeResult:
        text = await self.loader.generate(request.compact_prompt or request.prompt, request.max_output_tokens)
        if not text:
            raise BackendError(self.provider.value, "model returned empty output")
        return CreativeResult(ResultKind.TEXT, text, self.provider, self.loader.model_identifier)

    async def generate_structured(self, request: CreativeRequest) -> CreativeResult:
        prompt = f"{request.compact_prompt or request.prompt}\n\nReturn ONLY valid JSON.\nJSON:"
        text = await self.loader.generate(prompt, request.max_output_tokens)
        payload = parse_structured(text, request.schema, self.provider.value)
        return CreativeResult(ResultKind.STRUCTURED, payload, self.provider, self.loader.model_identifier)

    def describe(self) -> Dict[str, Any]:
        info = super().describe()
        info.update(self.loader.status.to_dict())
        return info
