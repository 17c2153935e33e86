# nats_latency/stats.py
# Reduces the raw samples of a finished run (nanosecond integers) to the
# numbers the report prints.
import math
from dataclasses import dataclass, field

from hdrh.histogram import HdrHistogram

from .errors import HistogramRangeError
from .rate import rps

PERCENTILES = (10.0, 50.0, 75.0, 90.0, 99.0, 99.9, 99.99, 99.999, 99.9999, 99.99999, 100.0)
SIGNIFICANT_FIGURES = 3

_SIZES = ("B", "K", "M", "G", "T")
_RATES = ("Bps", "Kbps", "Mbps", "Gbps", "Tbps")


def median(values):
    """Classic sample median of an already sorted, non-empty sequence."""
    n = len(values)
    if n == 0:
        raise ValueError("median of an empty sample set")
    if n % 2 == 0:
        return (values[n // 2 - 1] + values[n // 2]) / 2
    return values[n // 2]


def build_histogram(sorted_samples, significant_figures=SIGNIFICANT_FIGURES):
    """HDR histogram spanning 1ns up to the largest sample."""
    highest = max(sorted_samples[-1], 2)
    h = HdrHistogram(1, highest, significant_figures)
    for ns in sorted_samples:
        if not h.record_value(ns):
            raise HistogramRangeError(f"sample {ns}ns outside histogram range [1, {highest}]")
    return h


def percentiles(h, points=PERCENTILES):
    return [(p, h.get_value_at_percentile(p)) for p in points]


def percentile_label(p):
    return format(p, ".5f").rstrip("0").rstrip(".")


@dataclass
class LatencySummary:
    count: int
    msg_size: int
    percentiles: list = field(default_factory=list)
    rate: int = 0
    min_ns: int = 0
    median_ns: float = 0
    max_ns: int = 0
    first_pub_ns: int = 0
    pub_elapsed_ns: int = 0
    sub_elapsed_ns: int = 0

    @property
    def bandwidth(self):
        """Bytes per second across both directions of the exchange."""
        return self.rate * self.msg_size * 2

    def as_dict(self):
        return {
            "count": self.count,
            "msg_size": self.msg_size,
            "percentiles_ns": {percentile_label(p): v for p, v in self.percentiles},
            "msgs_per_sec": self.rate,
            "bandwidth_bps": self.bandwidth * 8,
            "min_ns": self.min_ns,
            "median_ns": self.median_ns,
            "max_ns": self.max_ns,
            "first_pub_ns": self.first_pub_ns,
            "pub_elapsed_ns": self.pub_elapsed_ns,
            "sub_elapsed_ns": self.sub_elapsed_ns,
        }


def summarize(samples, msg_size, pub_elapsed_ns, sub_elapsed_ns, first_pub_ns=0):
    ordered = sorted(samples)
    h = build_histogram(ordered)
    return LatencySummary(
        count=len(ordered),
        msg_size=msg_size,
        percentiles=percentiles(h),
        rate=rps(len(ordered), pub_elapsed_ns) or 0,
        min_ns=ordered[0],
        median_ns=median(ordered),
        max_ns=ordered[-1],
        first_pub_ns=first_pub_ns,
        pub_elapsed_ns=pub_elapsed_ns,
        sub_elapsed_ns=sub_elapsed_ns,
    )


def _human(n, suffixes):
    if n < 10:
        return f"{n}{suffixes[0]}"
    e = min(math.floor(math.log(n) / math.log(1024)), len(suffixes) - 1)
    val = math.floor(n / math.pow(1024, e) * 10 + 0.5) / 10
    if val < 10:
        return f"{val:.1f}{suffixes[e]}"
    return f"{val:.0f}{suffixes[e]}"


def byte_size(n):
    return _human(n, _SIZES)


def bps(n):
    """Format a byte rate as bits per second."""
    return _human(n * 8, _RATES)


def format_duration(ns):
    """Render nanoseconds the way a stopwatch would: 2s, 1.5ms, 12.345µs, 750ns."""
    ns = int(round(ns))
    if ns >= 1_000_000_000:
        whole, frac, width, unit = divmod(ns, 1_000_000_000) + (9, "s")
    elif ns >= 1_000_000:
        whole, frac, width, unit = divmod(ns, 1_000_000) + (6, "ms")
    elif ns >= 1_000:
        whole, frac, width, unit = divmod(ns, 1_000) + (3, "µs")
    else:
        return f"{ns}ns"
    digits = f"{frac:0{width}d}".rstrip("0")
    return f"{whole}.{digits}{unit}" if digits else f"{whole}{unit}"
