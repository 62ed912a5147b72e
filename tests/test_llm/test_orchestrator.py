"""
Tests for Provider Orchestrator

Tests:
- Provider resolution for every preference
- Single fallback and invocation bounds
- Capability routing for image analysis and search grounding
- Error reporting when providers are exhausted or unusable
- Creative operations and diagnostics
"""

import asyncio
import json

import httpx
import pytest

from shotwright.core.constants import Capability, CreativeTask, ProviderChoice, ProviderPreference
from shotwright.core.exceptions import (
    BackendError,
    InvalidConfigError,
    LocalBackendError,
    MissingCredentialsError,
    ProviderExhaustedError,
    ResponseParseError,
)
from shotwright.llm import prompts
from shotwright.llm.api_clients import CreativeRequest
from shotwright.llm.context import LoaderState, ProviderContext
from shotwright.llm.orchestrator import ProviderOrchestrator
from shotwright.models import ChatMessage, DirectorVision, Shot, ShotListResult, SoundscapeResult, StyleSuggestions

HOSTED = ProviderChoice.HOSTED
LOCAL = ProviderChoice.LOCAL
ALL_CAPABILITIES = set(Capability)


def make_orchestrator(config, hosted, local, preference=ProviderPreference.AUTO):
    context = ProviderContext(preference=preference)
    return ProviderOrchestrator(config, context=context, hosted=hosted, local=local)


def chat_request():
    return CreativeRequest(CreativeTask.FREE_TEXT_CHAT, "hello")


class TestDetermineProvider:
    """Tests for provider resolution."""

    def test_explicit_hosted_without_credentials_uses_local(self, config, fake_backend):
        orchestrator = make_orchestrator(
            config, fake_backend(HOSTED, usable=False), fake_backend(LOCAL, ready=False),
            ProviderPreference.EXPLICIT_HOSTED
        )

        assert orchestrator.determine_provider() is LOCAL

    def test_explicit_hosted_with_credentials(self, config, fake_backend):
        orchestrator = make_orchestrator(
            config, fake_backend(HOSTED), fake_backend(LOCAL), ProviderPreference.EXPLICIT_HOSTED
        )

        assert orchestrator.determine_provider() is HOSTED

    def test_explicit_local_ignores_credentials(self, config, fake_backend):
        orchestrator = make_orchestrator(
            config, fake_backend(HOSTED), fake_backend(LOCAL, ready=False), ProviderPreference.EXPLICIT_LOCAL
        )

        assert orchestrator.determine_provider() is LOCAL

    def test_auto_prefers_ready_local(self, config, fake_backend):
        orchestrator = make_orchestrator(config, fake_backend(HOSTED), fake_backend(LOCAL, ready=True))

        assert orchestrator.determine_provider() is LOCAL

    def test_auto_uses_hosted_when_local_not_ready(self, config, fake_backend):
        orchestrator = make_orchestrator(config, fake_backend(HOSTED), fake_backend(LOCAL, ready=False))

        assert orchestrator.determine_provider() is HOSTED

    def test_auto_with_nothing_configured_uses_local(self, config, fake_backend):
        orchestrator = make_orchestrator(
            config, fake_backend(HOSTED, usable=False), fake_backend(LOCAL, ready=False)
        )

        assert orchestrator.determine_provider() is LOCAL

    def test_set_preference_accepts_strings(self, config, fake_backend):
        orchestrator = make_orchestrator(config, fake_backend(HOSTED), fake_backend(LOCAL))

        orchestrator.set_preference("local")

        assert orchestrator.preference is ProviderPreference.EXPLICIT_LOCAL
        with pytest.raises(InvalidConfigError):
            orchestrator.set_preference("cloud")


class TestExecute:
    """Tests for execute and fallback."""

    @pytest.mark.asyncio
    async def test_primary_success(self, config, fake_backend):
        hosted = fake_backend(HOSTED, responses=["from hosted"])
        local = fake_backend(LOCAL, ready=False)
        orchestrator = make_orchestrator(config, hosted, local)

        result = await orchestrator.execute(chat_request())

        assert result.payload == "from hosted"
        assert result.provider is HOSTED
        assert orchestrator.last_used_provider is HOSTED
        assert local.invocations == []
        assert local.prepare_calls == 0

    @pytest.mark.asyncio
    async def test_hosted_parse_failure_falls_back_to_local(self, config, fake_backend):
        hosted = fake_backend(HOSTED, responses=[ResponseParseError("hosted", "invalid JSON")])
        local = fake_backend(LOCAL, ready=False, responses=["from local"])
        orchestrator = make_orchestrator(config, hosted, local)

        result = await orchestrator.execute(chat_request())

        assert result.payload == "from local"
        assert result.provider is LOCAL
        assert orchestrator.last_used_provider is LOCAL
        assert local.prepare_calls == 1

    @pytest.mark.asyncio
    async def test_always_failing_backends_invoked_at_most_twice(self, config, fake_backend):
        hosted = fake_backend(HOSTED, responses=[BackendError("hosted", "500")] * 5)
        local = fake_backend(LOCAL, responses=[BackendError("local", "garbage")] * 5)
        orchestrator = make_orchestrator(config, hosted, local, ProviderPreference.EXPLICIT_HOSTED)

        with pytest.raises(ProviderExhaustedError) as exc_info:
            await orchestrator.execute(chat_request())

        assert len(hosted.invocations) + len(local.invocations) == 2
        assert [provider for provider, _ in exc_info.value.attempts] == ["hosted", "local"]
        assert isinstance(exc_info.value.__cause__, BackendError)

    @pytest.mark.asyncio
    async def test_no_credentials_and_local_load_failure_names_both(self, config, fake_backend):
        hosted = fake_backend(HOSTED, usable=False)
        local = fake_backend(LOCAL, ready=False, prepare_error=LocalBackendError("failed to load: offline"))
        orchestrator = make_orchestrator(config, hosted, local)

        with pytest.raises(ProviderExhaustedError) as exc_info:
            await orchestrator.execute(chat_request())

        message = str(exc_info.value)
        assert "local:" in message and "offline" in message
        assert "hosted: skipped" in message and "No API key" in message
        assert hosted.invocations == []

    @pytest.mark.asyncio
    async def test_unusable_local_is_not_attempted(self, config, fake_backend):
        hosted = fake_backend(HOSTED, responses=[BackendError("hosted", "503")])
        local = fake_backend(LOCAL, usable=False, ready=False)
        orchestrator = make_orchestrator(config, hosted, local)

        with pytest.raises(ProviderExhaustedError) as exc_info:
            await orchestrator.execute(chat_request())

        assert local.prepare_calls == 0
        assert "local: skipped" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_image_request_routes_to_hosted(self, config, fake_backend):
        vision = DirectorVision(genre="Noir", tone="Grim", color_palette="Ink", inspirations="Melville")
        hosted = fake_backend(HOSTED, responses=[vision], capabilities=ALL_CAPABILITIES)
        local = fake_backend(LOCAL, ready=True)
        orchestrator = make_orchestrator(config, hosted, local, ProviderPreference.EXPLICIT_LOCAL)

        result = await orchestrator.analyze_image_style(b"jpeg-bytes")

        assert result == vision
        assert local.invocations == []
        assert orchestrator.last_used_provider is HOSTED

    @pytest.mark.asyncio
    async def test_image_request_without_credentials(self, config, fake_backend):
        hosted = fake_backend(HOSTED, usable=False, capabilities=ALL_CAPABILITIES)
        local = fake_backend(LOCAL, ready=False)
        orchestrator = make_orchestrator(config, hosted, local)

        with pytest.raises(MissingCredentialsError):
            await orchestrator.analyze_image_style(b"jpeg-bytes")

        assert local.prepare_calls == 0

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self, config, fake_backend):
        class SlowBackend(fake_backend):
            async def generate_text(self, request):
                await asyncio.sleep(1)

        hosted = SlowBackend(HOSTED)
        hosted.timeout = 0.01
        local = fake_backend(LOCAL, ready=False, responses=["from local"])
        orchestrator = make_orchestrator(config, hosted, local)

        result = await orchestrator.execute(chat_request())

        assert result.provider is LOCAL

    @pytest.mark.asyncio
    async def test_progress_forwarded_to_loader(self, config, fake_backend):
        received = []

        class ReportingLocal(fake_backend):
            async def prepare(self, on_progress=None):
                on_progress("Model ready!", 1.0)
                self.ready = True

        local = ReportingLocal(LOCAL, ready=False, responses=["hi"])
        orchestrator = make_orchestrator(
            config, fake_backend(HOSTED, usable=False), local
        )

        await orchestrator.execute(chat_request(), lambda stage, progress: received.append((stage, progress)))

        assert received == [("Model ready!", 1.0)]


class TestCreativeOperations:
    """Tests for the wizard-facing operations."""

    @pytest.mark.asyncio
    async def test_generate_shots_assigns_missing_ids(self, config, fake_backend, shot_list_payload):
        payload = ShotListResult.model_validate(shot_list_payload)
        hosted = fake_backend(HOSTED, responses=[payload])
        orchestrator = make_orchestrator(config, hosted, fake_backend(LOCAL, ready=False))

        result = await orchestrator.generate_shots_from_script("INT. ROOFTOP - NIGHT", "Keep it tense")

        assert [shot.id for shot in result.shots] == ["shot-1", "custom-id"]
        request = hosted.invocations[0]
        assert request.task is CreativeTask.SCRIPT_TO_SHOTLIST
        assert request.schema is ShotListResult
        assert "Keep it tense" in request.prompt
        assert "INT. ROOFTOP - NIGHT" in request.compact_prompt

    @pytest.mark.asyncio
    async def test_suggest_styles(self, config, fake_backend):
        styles = StyleSuggestions.model_validate({"styles": [
            {"genre": "Western", "tone": "Dry", "colorPalette": "Ochre", "inspirations": "Leone"},
        ]})
        orchestrator = make_orchestrator(
            config, fake_backend(HOSTED, responses=[styles]), fake_backend(LOCAL, ready=False)
        )

        result = await orchestrator.suggest_styles_from_script("A duel at noon.")

        assert [s.genre for s in result] == ["Western"]

    @pytest.mark.asyncio
    async def test_chat_formats_history(self, config, fake_backend):
        hosted = fake_backend(HOSTED, responses=["Try a dolly zoom."])
        orchestrator = make_orchestrator(config, hosted, fake_backend(LOCAL, ready=False))
        history = [ChatMessage(sender="user", text="How do I show vertigo?")]

        reply = await orchestrator.generate_chat_response(history)

        assert reply == "Try a dolly zoom."
        assert hosted.invocations[0].prompt.endswith("user: How do I show vertigo?\ngemini:")

    @pytest.mark.asyncio
    async def test_field_suggestion(self, config, fake_backend, sample_story):
        hosted = fake_backend(HOSTED, responses=["A courier races the tide."])
        orchestrator = make_orchestrator(config, hosted, fake_backend(LOCAL, ready=False))

        assert await orchestrator.get_suggestion_for_field("logline", sample_story) == "A courier races the tide."
        assert "Storm Rooftop" in hosted.invocations[0].prompt
        with pytest.raises(ValueError):
            await orchestrator.get_suggestion_for_field("budget", sample_story)

    @pytest.mark.asyncio
    async def test_soundscape_references_shot_ids(
        self, config, fake_backend, sample_story, sample_vision, shot_payload
    ):
        soundscape = SoundscapeResult.model_validate({"soundscape": [
            {"shotId": "shot-1", "score": "Drones", "sfx": "Thunder", "ambience": "Rain"},
        ]})
        hosted = fake_backend(HOSTED, responses=[soundscape])
        orchestrator = make_orchestrator(config, hosted, fake_backend(LOCAL, ready=False))

        result = await orchestrator.generate_soundscape(
            sample_story, sample_vision, [Shot.model_validate(shot_payload)]
        )

        assert result[0].sfx == "Thunder"
        assert "(ID: shot-1)" in hosted.invocations[0].prompt

    @pytest.mark.asyncio
    async def test_shot_detail_operations(
        self, config, fake_backend, sample_story, sample_vision, shot_payload
    ):
        shot = Shot.model_validate(shot_payload)
        hosted = fake_backend(HOSTED, responses=[shot, "WHY: fate.", "A storm-lashed rooftop at night."])
        orchestrator = make_orchestrator(config, hosted, fake_backend(LOCAL, ready=False))

        details = await orchestrator.get_shot_details(sample_story, sample_vision, "Mara looks down", "dread")
        note = await orchestrator.get_director_note_suggestion(sample_story, sample_vision, shot, "dread")
        cinematic = await orchestrator.make_prompt_cinematic("a rooftop")

        assert details.shot_type == shot.shot_type
        assert note == "WHY: fate."
        assert cinematic.startswith("A storm-lashed")
        tasks = [request.task for request in hosted.invocations]
        assert tasks == [CreativeTask.SHOT_DETAILS, CreativeTask.DIRECTOR_NOTE, CreativeTask.CINEMATIC_PROMPT]

    @pytest.mark.asyncio
    async def test_initial_scene(self, config, fake_backend, sample_story, sample_vision, shot_payload):
        from shotwright.models import ShotList

        shots = ShotList.model_validate({"shots": [shot_payload, shot_payload]})
        hosted = fake_backend(HOSTED, responses=[shots])
        orchestrator = make_orchestrator(config, hosted, fake_backend(LOCAL, ready=False))

        result = await orchestrator.get_initial_scene(sample_story, sample_vision, "longing")

        assert [shot.id for shot in result] == ["shot-1", "shot-2"]
        assert "Drowned City" in hosted.invocations[0].prompt

    @pytest.mark.asyncio
    async def test_enrich_with_search_routes_to_hosted(self, config, fake_backend):
        hosted = fake_backend(HOSTED, responses=["Venice sinks 2mm a year."], capabilities=ALL_CAPABILITIES)
        local = fake_backend(LOCAL, ready=True)
        orchestrator = make_orchestrator(config, hosted, local, ProviderPreference.EXPLICIT_LOCAL)

        enriched = await orchestrator.enrich_with_search("Venice", "A city on the water")

        assert enriched == "Venice sinks 2mm a year."
        request = hosted.invocations[0]
        assert request.task is CreativeTask.SEARCH_ENRICHMENT
        assert request.use_search is True
        assert '"A city on the water"' in request.prompt
        assert local.invocations == []
        assert orchestrator.last_used_provider is HOSTED

    @pytest.mark.asyncio
    async def test_enrich_with_search_without_credentials(self, config, fake_backend):
        hosted = fake_backend(HOSTED, usable=False, capabilities=ALL_CAPABILITIES)
        local = fake_backend(LOCAL, ready=True)
        orchestrator = make_orchestrator(config, hosted, local)

        with pytest.raises(MissingCredentialsError):
            await orchestrator.enrich_with_search("Venice")

        assert local.invocations == []

    @pytest.mark.asyncio
    async def test_execute_result_names_the_answering_backend(self, config, fake_backend, shot_list_payload):
        payload = ShotListResult.model_validate(shot_list_payload)
        hosted = fake_backend(HOSTED, responses=[ResponseParseError("hosted", "invalid JSON")])
        local = fake_backend(LOCAL, ready=False, responses=[payload])
        orchestrator = make_orchestrator(config, hosted, local)

        result = await orchestrator.execute(prompts.shot_list_request("INT. ROOFTOP - NIGHT"))

        assert result.provider is LOCAL
        assert result.model == "local-model"
        assert [shot.id for shot in result.payload.shots] == ["shot-1", "custom-id"]


class TestDiagnostics:
    """Tests for initialize_ai, test_connection and get_provider_info."""

    @pytest.mark.asyncio
    async def test_initialize_ai_warms_local(self, config, fake_backend):
        local = fake_backend(LOCAL, ready=False)
        orchestrator = make_orchestrator(config, fake_backend(HOSTED, usable=False), local)

        choice = await orchestrator.initialize_ai()

        assert choice is LOCAL
        assert local.prepare_calls == 1

    @pytest.mark.asyncio
    async def test_connection_success(self, config, fake_backend):
        orchestrator = make_orchestrator(config, fake_backend(HOSTED), fake_backend(LOCAL, ready=False))

        report = await orchestrator.test_connection()

        assert report.success
        assert report.provider is HOSTED
        assert report.model == "hosted-model"

    @pytest.mark.asyncio
    async def test_connection_failure_is_reported(self, config, fake_backend):
        local = fake_backend(LOCAL, ready=False, prepare_error=LocalBackendError("no weights"))
        orchestrator = make_orchestrator(config, fake_backend(HOSTED, usable=False), local)

        report = await orchestrator.test_connection()

        assert report.success is False
        assert "no weights" in report.message
        assert report.to_dict()["provider"] == "local"

    def test_provider_info(self, config, fake_backend):
        orchestrator = make_orchestrator(config, fake_backend(HOSTED, usable=False), fake_backend(LOCAL, ready=False))

        info = orchestrator.get_provider_info()

        assert info["hosted"]["available"] is False
        assert info["preference"] == "auto"
        assert info["resolved"] == "local"
        assert info["last_used"] is None


class TestWithRealBackends:
    """Orchestrator wired to the real hosted and local backends."""

    @pytest.mark.asyncio
    async def test_invalid_hosted_json_falls_back_to_local_model(self, config, credentials):
        credentials.set_api_key("gemini", "secret")
        local_output = json.dumps({"styles": [
            {"genre": "Noir", "tone": "Grim", "colorPalette": "Ink", "inspirations": "Melville"},
        ]})

        def handler(request):
            body = json.loads(request.content)
            text = "OK" if "generationConfig" not in body else "this is not json"
            return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})

        async def pipeline_factory(local_config, report):
            return lambda prompt, **kwargs: [{"generated_text": local_output}]

        orchestrator = ProviderOrchestrator(
            config,
            credentials=credentials,
            transport=httpx.MockTransport(handler),
            pipeline_factory=pipeline_factory,
        )

        styles = await orchestrator.suggest_styles_from_script("A detective walks into the rain.")

        assert styles[0].genre == "Noir"
        assert orchestrator.last_used_provider is LOCAL
        assert orchestrator.context.local_status.state is LoaderState.READY
        assert orchestrator.context.cached_working_model == "model-a"

    @pytest.mark.asyncio
    async def test_generation_timeout_clears_cached_model(self, config, credentials):
        credentials.set_api_key("gemini", "secret")
        config.hosted.request_timeout = 0.3

        async def handler(request):
            if "generationConfig" in json.loads(request.content):
                await asyncio.sleep(5)
            return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "OK"}]}}]})

        async def pipeline_factory(local_config, report):
            raise OSError("no weights on disk")

        orchestrator = ProviderOrchestrator(
            config,
            credentials=credentials,
            transport=httpx.MockTransport(handler),
            pipeline_factory=pipeline_factory,
        )
        orchestrator.set_preference(ProviderPreference.EXPLICIT_HOSTED)

        with pytest.raises(ProviderExhaustedError) as exc_info:
            await orchestrator.execute(chat_request())

        assert "timed out after 0.3s" in str(exc_info.value)
        assert "no weights on disk" in str(exc_info.value)
        assert orchestrator.context.cached_working_model is None

    @pytest.mark.asyncio
    async def test_explicit_hosted_without_key_runs_locally(self, config, credentials):
        async def pipeline_factory(local_config, report):
            return lambda prompt, **kwargs: [{"generated_text": "A quiet reply."}]

        orchestrator = ProviderOrchestrator(
            config, credentials=credentials, pipeline_factory=pipeline_factory
        )
        orchestrator.set_preference(ProviderPreference.EXPLICIT_HOSTED)

        reply = await orchestrator.generate_chat_response([ChatMessage(sender="user", text="hi")])

        assert reply == "A quiet reply."
        assert orchestrator.last_used_provider is LOCAL
