from __future__ import annotations

"""In-memory request metrics with Prometheus text exposition.

Counters and summaries only; values live for the process lifetime.
"""

from dataclasses import dataclass
from threading import Lock
from typing import Dict, Tuple


LabelKey = Tuple[Tuple[str, str], ...]  # sorted tuple of (k,v)


def _labels_key(labels: Dict[str, str] | None) -> LabelKey:
    return tuple(sorted((labels or {}).items()))


def _render_labels(labels: LabelKey) -> str:
    if not labels:
        return ""
    return "{" + ",".join(f'{k}="{v}"' for k, v in labels) + "}"


@dataclass
class _Summary:
    count: float = 0.0
    sum: float = 0.0


class Metrics:
    def __init__(self) -> None:
        self._counters: Dict[str, Dict[LabelKey, float]] = {}
        self._summaries: Dict[str, Dict[LabelKey, _Summary]] = {}
        self._lock = Lock()

    def inc(self, name: str, *, labels: Dict[str, str] | None = None, value: float = 1.0) -> None:
        with self._lock:
            series = self._counters.setdefault(name, {})
            key = _labels_key(labels)
            series[key] = series.get(key, 0.0) + value

    def observe(self, name: str, value: float, *, labels: Dict[str, str] | None = None) -> None:
        with self._lock:
            s = self._summaries.setdefault(name, {}).setdefault(_labels_key(labels), _Summary())
            s.count += 1.0
            s.sum += float(value)

    def get(self, name: str, *, labels: Dict[str, str] | None = None) -> float:
        """Current value of a counter series (0.0 when never incremented)."""

        with self._lock:
            return self._counters.get(name, {}).get(_labels_key(labels), 0.0)

    def to_prometheus(self) -> str:
        lines: list[str] = []
        with self._lock:
            for name, series in self._counters.items():
                lines.append(f"# TYPE {name} counter")
                for labels, value in series.items():
                    lines.append(f"{name}{_render_labels(labels)} {value}")
            # Summaries are exported as _count and _sum
            for name, series in self._summaries.items():
                lines.append(f"# TYPE {name} summary")
                for labels, s in series.items():
                    label_str = _render_labels(labels)
                    lines.append(f"{name}_count{label_str} {s.count}")
                    lines.append(f"{name}_sum{label_str} {s.sum}")
        return "\n".join(lines) + "\n"
