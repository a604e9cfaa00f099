"""Histogram of delays with fixed-width buckets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


@dataclass
class DelaySummary:
    """Delay samples counted into buckets.

    ``bucket_size`` is in milliseconds; durations are in microseconds.
    Bucket ``i`` counts delays in ``[i, i+1) * bucket_size`` and the last
    bucket counts everything at or beyond ``bucket_num * bucket_size``.
    """

    bucket_size: int = 0
    bucket_num: int = 0
    count: int = 0
    sum: int = 0
    ave: int = 0
    counters: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.counters) != self.bucket_num + 1:
            self.counters = [0] * (self.bucket_num + 1)

    def calc_avg(self) -> None:
        """Update the average from sum and count."""
        if self.count != 0:
            self.ave = _trunc_div(self.sum, self.count)

    def clear(self) -> None:
        self.count = 0
        self.sum = 0
        self.ave = 0
        self.counters = [0] * (self.bucket_num + 1)

    def add(self, duration: int) -> None:
        """Add one sample, in microseconds; negative samples are ignored."""
        if duration < 0:
            return
        self.count += 1
        self.sum += duration
        slot = duration // (self.bucket_size * 1000)
        self.counters[min(slot, self.bucket_num)] += 1

    def copy(self) -> "DelaySummary":
        return DelaySummary(
            bucket_size=self.bucket_size,
            bucket_num=self.bucket_num,
            count=self.count,
            sum=self.sum,
            ave=self.ave,
            counters=list(self.counters),
        )

    def calc_sum(self, other: "DelaySummary") -> None:
        """Add ``other`` into this summary; buckets must match."""
        if self.bucket_size != other.bucket_size or self.bucket_num != other.bucket_num:
            raise ValueError("bucket size or num not match")
        self.count += other.count
        self.sum += other.sum
        self.calc_avg()
        self.counters = [a + b for a, b in zip(self.counters, other.counters)]

    def kv_string(self, prefix: str) -> str:
        """Return ``key:value`` lines with keys like ``<prefix>_Sum``."""
        lines = [
            f"{prefix}_BucketSize:{self.bucket_size}\n",
            f"{prefix}_BucketNum:{self.bucket_num}\n",
            f"{prefix}_Count:{self.count}\n",
            f"{prefix}_Sum:{self.sum}\n",
            f"{prefix}_Ave:{self.ave}\n",
        ]
        lines.extend(
            f"{prefix}_Counters_{i}:{value}\n" for i, value in enumerate(self.counters)
        )
        return "".join(lines)

    def prometheus_string(self, prefix: str) -> str:
        """Return the summary as a Prometheus histogram."""
        lines = [f"# TYPE {prefix} histogram\n"]
        cumulative = 0
        for i, value in enumerate(self.counters[: self.bucket_num]):
            cumulative += value
            lines.append(f'{prefix}_bucket{{le="{(i + 1) * 1000}"}} {cumulative}\n')
        lines.append(f'{prefix}_bucket{{le="+Inf"}} {self.count}\n')
        lines.append(f"{prefix}_sum {self.sum}\n")
        lines.append(f"{prefix}_count {self.count}\n")
        return "".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation."""
        return {
            "BucketSize": self.bucket_size,
            "BucketNum": self.bucket_num,
            "Count": self.count,
            "Sum": self.sum,
            "Ave": self.ave,
            "Counters": list(self.counters),
        }