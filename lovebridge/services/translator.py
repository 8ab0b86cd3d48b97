from __future__ import annotations

"""OpenRouter chat-completion translator and two-call composite."""

from time import perf_counter
from typing import Any, Callable
from urllib.parse import urlparse

import httpx

from lovebridge.schemas.api_io import TranslationResult
from lovebridge.services.logging import get_logger
from lovebridge.services.metrics import Metrics


MODES = ("toJapanese", "toCantonese", "toEnglish")
FULL_MODES = ("toJapanese", "toCantonese")

SYSTEM_PROMPT = (
    "You are a professional translator specializing in romantic conversations between couples.\n"
    "You handle mixed languages (English, Cantonese, Japanese) with emotional sensitivity.\n"
    "Always preserve the loving tone and intimate meaning of the message.\n"
    "Respond only with the translation, no explanations."
)

APP_TITLE = "LoveBridge Translation App"


class TranslationError(Exception):
    pass


class TranslatorNotConfigured(TranslationError):
    def __init__(self) -> None:
        super().__init__("OpenRouter API key not configured in environment variables")


class UpstreamFailure(TranslationError):
    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


def build_prompt(text: str, mode: str) -> str:
    if mode == "toJapanese":
        return (
            "Translate this mixed language text to natural, romantic Japanese. "
            "The text may contain English, Cantonese, or Japanese mixed together. "
            f'Preserve the emotional tone and intimate meaning:\n\n"{text}"\n\nJapanese translation:'
        )
    if mode == "toCantonese":
        return (
            "Translate this Japanese text to natural, romantic Cantonese. "
            f'Preserve the emotional tone and intimate meaning:\n\n"{text}"\n\nCantonese translation:'
        )
    if mode == "toEnglish":
        return (
            "Translate this Japanese text to natural, romantic English. "
            f'Preserve the emotional tone and intimate meaning:\n\n"{text}"\n\nEnglish translation:'
        )
    raise ValueError(f"unknown translation mode: {mode}")


def demo_translation(mode: str) -> TranslationResult:
    """Canned bracketed result used when the real translator is unavailable."""

    if mode == "toJapanese":
        return TranslationResult(
            original="[Demo] Hello, I love you! 我想念你",
            japanese="[デモ] こんにちは、愛しています！会いたいです",
            cantonese="[演示] 你好，我愛你！我想念你",
            english="[Demo] Hello, I love you! I miss you",
            demo=True,
        )
    return TranslationResult(
        original="[デモ] 今日はとても楽しかったです",
        japanese="[デモ] 今日はとても楽しかったです",
        cantonese="[演示] 今日真係好開心",
        english="[Demo] Today was really fun",
        demo=True,
    )


def _referer(value: str | None) -> str | None:
    if not value:
        return None
    ref = value.strip()
    parsed = urlparse(ref if ref.startswith("http") else f"https://{ref}")
    if parsed.scheme in {"http", "https"} and parsed.netloc:
        return parsed.geturl()
    return None


class OpenRouterTranslator:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_key: str | None,
        url: str = "https://openrouter.ai/api/v1/chat/completions",
        model: str = "openai/gpt-4o-mini",
        temperature: float = 0.3,
        max_tokens: int = 200,
        referrer: str | None = None,
        metrics: Metrics | None = None,
        on_success: Callable[[], None] | None = None,
    ) -> None:
        self.client = client
        self.api_key = api_key
        self.url = url
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.referrer = _referer(referrer)
        self.metrics = metrics
        # called once per paid, successful completion
        self.on_success = on_success

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Title": APP_TITLE,
        }
        if self.referrer:
            headers["HTTP-Referer"] = self.referrer
        return headers

    def _payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    async def translate(self, text: str, mode: str) -> str:
        """Translate `text` according to `mode` with a single completion call.

        Raises TranslatorNotConfigured when no key is set and UpstreamFailure
        on any transport, status or body problem.
        """

        if not self.configured:
            raise TranslatorNotConfigured()
        prompt = build_prompt(text, mode)
        logger = get_logger().bind(mode=mode, model=self.model)
        start = perf_counter()
        try:
            logger.info("translation_request_start", text_len=len(text))
            resp = await self.client.post(self.url, json=self._payload(prompt), headers=self._headers())
        except httpx.HTTPError as e:
            logger.warning("translation_request_error", error=str(e), error_type=type(e).__name__)
            raise UpstreamFailure(f"OpenRouter request failed: {type(e).__name__}") from e
        finally:
            if self.metrics is not None:
                self.metrics.observe(
                    "upstream_request_seconds", perf_counter() - start, labels={"provider": "openrouter"}
                )

        if resp.status_code < 200 or resp.status_code >= 300:
            logger.warning("translation_http_error", status=resp.status_code, preview=resp.text[:200])
            raise UpstreamFailure(f"OpenRouter API error: {resp.status_code}", status=resp.status_code)

        try:
            data = resp.json()
            content = data["choices"][0]["message"].get("content") or ""
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            logger.warning("translation_bad_body", preview=resp.text[:200])
            raise UpstreamFailure("OpenRouter returned an unexpected body") from e

        elapsed_ms = int((perf_counter() - start) * 1000)
        logger.info("translation_ok", status=resp.status_code, elapsed_ms=elapsed_ms)
        if self.on_success is not None:
            self.on_success()
        return content.strip()

    async def process_full_translation(self, text: str, mode: str) -> TranslationResult:
        """Fill all three languages with two sequential calls.

        toJapanese: text -> Japanese, then that Japanese -> Cantonese; English
        keeps the original text verbatim.
        toCantonese: text -> Cantonese and text -> English, both from the
        source; Japanese keeps the original.
        Any failure propagates; no partial result is returned.
        """

        if mode == "toJapanese":
            japanese = await self.translate(text, "toJapanese")
            cantonese = await self.translate(japanese, "toCantonese")
            return TranslationResult(
                original=text,
                japanese=japanese.strip(),
                cantonese=cantonese.strip(),
                english=text,
            )
        if mode == "toCantonese":
            cantonese = await self.translate(text, "toCantonese")
            english = await self.translate(text, "toEnglish")
            return TranslationResult(
                original=text,
                japanese=text,
                cantonese=cantonese.strip(),
                english=english.strip(),
            )
        raise ValueError(f"unsupported composite mode: {mode}")
