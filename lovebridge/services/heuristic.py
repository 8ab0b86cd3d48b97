from __future__ import annotations

"""Synthetic "demo" transcripts derived from crude audio statistics.

Used when no real speech-to-text provider returned text. The phrase bucket
is chosen by buffer length; the phrase within the bucket is random.
"""

import random
from dataclasses import dataclass
from typing import Literal

from lovebridge.config.settings import HeuristicSettings


Bucket = Literal["short", "medium", "long"]

DEFAULT_INTENSITY = {"average": 50, "max": 100}


@dataclass
class HeuristicPick:
    text: str
    bucket: Bucket
    audio_length: int
    intensity: dict[str, int]


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def audio_intensity(audio: bytes, stride: int = 1000) -> dict[str, int]:
    """Average and peak of |byte - 128| sampled every `stride` bytes.

    The average divides by len/stride rather than by the sample count, so
    buffers whose length is not a multiple of stride read slightly higher.
    """

    if not audio or stride <= 0:
        return dict(DEFAULT_INTENSITY)
    total = 0
    peak = 0
    for i in range(0, len(audio), stride):
        value = abs(audio[i] - 128)
        total += value
        peak = max(peak, value)
    average = total / (len(audio) / stride)
    return {"average": _round_half_up(average), "max": peak}


class HeuristicTranscriber:
    def __init__(self, settings: HeuristicSettings, rng: random.Random | None = None) -> None:
        self.settings = settings
        self.rng = rng or random.Random()

    def bucket_for(self, audio_length: int) -> Bucket:
        if audio_length < self.settings.short_max_bytes:
            return "short"
        if audio_length < self.settings.medium_max_bytes:
            return "medium"
        return "long"

    def pool_for(self, bucket: Bucket) -> list[str]:
        return {
            "short": self.settings.short_phrases,
            "medium": self.settings.medium_phrases,
            "long": self.settings.long_phrases,
        }[bucket]

    def pick(self, audio: bytes) -> HeuristicPick:
        """Choose a phrase for `audio`. Raises IndexError on an empty pool."""

        length = len(audio)
        bucket = self.bucket_for(length)
        text = self.rng.choice(self.pool_for(bucket))
        return HeuristicPick(
            text=text,
            bucket=bucket,
            audio_length=length,
            intensity=audio_intensity(audio, self.settings.stride),
        )
