from __future__ import annotations

import asyncio
import random

import httpx

from conftest import make_settings, make_state
from lovebridge.config.settings import HeuristicSettings
from lovebridge.services.heuristic import HeuristicTranscriber
from lovebridge.services.metrics import Metrics
from lovebridge.services.stt_clients import HuggingFaceWhisperClient, OpenAIWhisperClient
from lovebridge.services.transcription import TranscriptionPipeline


AUDIO = b"RIFF" + b"\x80" * 1000


def _run(state, audio=AUDIO, mime="audio/webm"):
    async def go():
        try:
            return await state.transcriber.run(audio, mime)
        finally:
            await state.http.aclose()

    return asyncio.run(go())


def test_primary_success_short_circuits():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.host)
        assert request.headers["authorization"] == "Bearer sk-test"
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert b"whisper-1" in request.content
        return httpx.Response(200, json={"text": "  I love you  "})

    state = make_state(make_settings(openai_api_key="sk-test"), handler)
    result = _run(state)
    assert result.text == "I love you"
    assert result.source == "primary-api"
    assert result.demo is False
    assert result.audio_analysis is None
    assert seen == ["api.openai.com"]


def test_primary_failure_falls_to_secondary():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "api.openai.com":
            return httpx.Response(500, text="boom")
        assert request.headers["content-type"] == "audio/webm"
        assert request.content == AUDIO
        return httpx.Response(200, json={"text": "こんにちは"})

    state = make_state(make_settings(openai_api_key="sk-test"), handler)
    result = _run(state)
    assert result.source == "secondary-api"
    assert result.text == "こんにちは"
    assert state.metrics.get("stt_stage_total", labels={"source": "primary-api", "outcome": "failed"}) == 1


def test_unconfigured_primary_is_skipped():
    hosts = []

    def handler(request: httpx.Request) -> httpx.Response:
        hosts.append(request.url.host)
        return httpx.Response(200, json=[{"text": "hello"}])

    state = make_state(make_settings(openai_api_key="your_openai_api_key_here"), handler)
    result = _run(state)
    assert result.source == "secondary-api"
    assert hosts == ["api-inference.huggingface.co"]


def test_empty_text_counts_as_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"text": "   "})

    state = make_state(make_settings(openai_api_key="sk-test"), handler)
    result = _run(state)
    assert result.source == "heuristic-demo"
    assert result.demo is True


def test_all_providers_down_yields_heuristic_demo():
    state = make_state(make_settings(openai_api_key="sk-test"))
    result = _run(state, audio=b"\x80" * 2000)
    assert result.success is True
    assert result.demo is True
    assert result.source == "heuristic-demo"
    assert result.text in state.settings.heuristic.short_phrases
    assert result.audio_analysis is not None
    assert result.audio_analysis.audio_length == 2000
    assert result.audio_analysis.intensity.max == 0


def test_heuristic_failure_yields_fixed_fallback():
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(503))) as http:
            pipeline = TranscriptionPipeline(
                [HuggingFaceWhisperClient(http, url="https://hf.example/whisper")],
                HeuristicTranscriber(HeuristicSettings(short_phrases=[]), random.Random(1)),
                fixed_fallback_text="Hello, how are you?",
                metrics=Metrics(),
            )
            return await pipeline.run(b"\x00" * 10)

    result = asyncio.run(go())
    assert result.source == "fixed-fallback"
    assert result.text == "Hello, how are you?"
    assert result.demo is True


def test_bad_json_body_is_failure():
    async def go():
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, text="<html>busy</html>"))
        ) as http:
            client = OpenAIWhisperClient(http, api_key="sk-test")
            return await client.transcribe(b"abc", "audio/wav")

    outcome = asyncio.run(go())
    assert not outcome.ok
    assert outcome.reason == "empty_text"


def test_hf_token_sent_only_when_configured():
    headers = []

    def handler(request: httpx.Request) -> httpx.Response:
        headers.append(request.headers.get("authorization"))
        return httpx.Response(200, json={"text": "hi"})

    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            await HuggingFaceWhisperClient(http, url="https://hf.example/w").transcribe(b"a", "audio/wav")
            await HuggingFaceWhisperClient(http, url="https://hf.example/w", api_token="hf_x").transcribe(
                b"a", "audio/wav"
            )

    asyncio.run(go())
    assert headers == [None, "Bearer hf_x"]


def test_unencodable_mime_type_is_a_stage_failure():
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200))) as http:
            return await HuggingFaceWhisperClient(http, url="https://hf.example/w").transcribe(b"a", "audio/wäv")

    outcome = asyncio.run(go())
    assert not outcome.ok
    assert outcome.source == "secondary-api"
    assert outcome.reason == "error: UnicodeEncodeError"


class _Exploding:
    name = "exploding"
    source = "primary-api"

    async def transcribe(self, audio: bytes, mime_type: str):
        raise RuntimeError("strategy bug")


def test_raising_strategy_falls_through_to_next_stage():
    async def go():
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"text": "hi"}))
        ) as http:
            metrics = Metrics()
            pipeline = TranscriptionPipeline(
                [_Exploding(), HuggingFaceWhisperClient(http, url="https://hf.example/w")],
                HeuristicTranscriber(HeuristicSettings(), random.Random(1)),
                metrics=metrics,
            )
            return await pipeline.run(b"\x00" * 10), metrics

    result, metrics = asyncio.run(go())
    assert result.source == "secondary-api"
    assert result.text == "hi"
    assert metrics.get("stt_stage_total", labels={"source": "primary-api", "outcome": "failed"}) == 1


def test_raising_last_strategy_still_yields_heuristic():
    async def go():
        pipeline = TranscriptionPipeline(
            [_Exploding()],
            HeuristicTranscriber(HeuristicSettings(), random.Random(1)),
        )
        return await pipeline.run(b"\x80" * 2000)

    result = asyncio.run(go())
    assert result.success is True
    assert result.source == "heuristic-demo"
