from __future__ import annotations

"""HTTP clients for the real speech-to-text providers.

Each client is a transcription strategy: `await client.transcribe(audio, mime)`
returns a StageOutcome and never raises for upstream problems.
"""

from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Protocol

import httpx

from lovebridge.services.logging import get_logger
from lovebridge.services.metrics import Metrics


SOURCE_PRIMARY = "primary-api"
SOURCE_SECONDARY = "secondary-api"
SOURCE_HEURISTIC = "heuristic-demo"
SOURCE_FIXED = "fixed-fallback"


@dataclass
class StageOutcome:
    """Tagged result of one pipeline stage."""

    ok: bool
    source: str
    text: str = ""
    reason: str | None = None
    demo: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, source: str, text: str, *, demo: bool = False, **extra: Any) -> "StageOutcome":
        return cls(ok=True, source=source, text=text, demo=demo, extra=extra)

    @classmethod
    def failure(cls, source: str, reason: str) -> "StageOutcome":
        return cls(ok=False, source=source, reason=reason)


class TranscriptionStrategy(Protocol):
    name: str
    source: str

    async def transcribe(self, audio: bytes, mime_type: str) -> StageOutcome: ...


def _extract_text(resp: httpx.Response) -> str:
    """Pull `text` out of a provider JSON body; empty string when absent."""

    try:
        data = resp.json()
    except ValueError:
        return ""
    # HF inference sometimes wraps the result in a one-element list
    if isinstance(data, list) and data and isinstance(data[0], dict):
        data = data[0]
    if not isinstance(data, dict):
        return ""
    text = data.get("text") or ""
    return text.strip() if isinstance(text, str) else ""


class _HttpTranscriber:
    name = "http"
    source = SOURCE_PRIMARY

    def __init__(self, client: httpx.AsyncClient, metrics: Metrics | None = None) -> None:
        self.client = client
        self.metrics = metrics

    def configured(self) -> bool:
        return True

    async def _send(self, audio: bytes, mime_type: str) -> httpx.Response:
        raise NotImplementedError

    async def transcribe(self, audio: bytes, mime_type: str) -> StageOutcome:
        logger = get_logger().bind(provider=self.name)
        if not self.configured():
            logger.info("stt_provider_skipped", reason="not_configured")
            return StageOutcome.failure(self.source, "not_configured")

        start = perf_counter()
        try:
            logger.info("stt_request_start", audio_bytes=len(audio), mime_type=mime_type)
            resp = await self._send(audio, mime_type)
        except httpx.HTTPError as e:
            logger.warning("stt_request_error", error=str(e), error_type=type(e).__name__)
            return StageOutcome.failure(self.source, f"network_error: {type(e).__name__}")
        except Exception as e:
            # e.g. header values httpx refuses to encode
            logger.warning("stt_request_failed", exc_info=True, error_type=type(e).__name__)
            return StageOutcome.failure(self.source, f"error: {type(e).__name__}")
        finally:
            if self.metrics is not None:
                self.metrics.observe(
                    "upstream_request_seconds", perf_counter() - start, labels={"provider": self.name}
                )

        if resp.status_code < 200 or resp.status_code >= 300:
            logger.warning("stt_http_error", status=resp.status_code, preview=resp.text[:200])
            return StageOutcome.failure(self.source, f"http_{resp.status_code}")

        text = _extract_text(resp)
        if not text:
            logger.warning("stt_empty_text", status=resp.status_code)
            return StageOutcome.failure(self.source, "empty_text")

        logger.info("stt_request_ok", status=resp.status_code, text_len=len(text))
        return StageOutcome.success(self.source, text, provider=self.name)


class OpenAIWhisperClient(_HttpTranscriber):
    """Primary provider: OpenAI `/audio/transcriptions` with a bearer key."""

    name = "openai-whisper"
    source = SOURCE_PRIMARY

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_key: str | None,
        base_url: str = "https://api.openai.com/v1",
        model: str = "whisper-1",
        enabled: bool = True,
        metrics: Metrics | None = None,
    ) -> None:
        super().__init__(client, metrics)
        self.api_key = api_key
        self.url = base_url.rstrip("/") + "/audio/transcriptions"
        self.model = model
        self.enabled = enabled

    def configured(self) -> bool:
        return self.enabled and bool(self.api_key)

    async def _send(self, audio: bytes, mime_type: str) -> httpx.Response:
        files = {"file": ("audio.wav", audio, mime_type)}
        data = {"model": self.model, "response_format": "json"}
        headers = {"Authorization": f"Bearer {self.api_key}"}
        return await self.client.post(self.url, files=files, data=data, headers=headers)


class HuggingFaceWhisperClient(_HttpTranscriber):
    """Secondary provider: Hugging Face inference API, raw audio body."""

    name = "huggingface-whisper"
    source = SOURCE_SECONDARY

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        url: str,
        api_token: str | None = None,
        enabled: bool = True,
        metrics: Metrics | None = None,
    ) -> None:
        super().__init__(client, metrics)
        self.url = url
        self.api_token = api_token
        self.enabled = enabled

    def configured(self) -> bool:
        return self.enabled and bool(self.url)

    async def _send(self, audio: bytes, mime_type: str) -> httpx.Response:
        headers = {"Content-Type": mime_type or "audio/wav"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return await self.client.post(self.url, content=audio, headers=headers)
