# nats_latency/metrics.py
# Prometheus metrics for a latency run. They are always updated; the HTTP
# endpoint is only started when a port is configured.
import logging

from prometheus_client import start_http_server, Histogram, Counter, Gauge

from .errors import ConfigError

log = logging.getLogger(__name__)

LATENCY = Histogram(
    "nats_latency_seconds",
    "End-to-end publish to receive latency (seconds)",
    buckets=(0.00005, 0.0001, 0.00025, 0.0005, 0.001, 0.002, 0.005, 0.01, 0.05, 0.1, 1.0),
)
PUBLISHED = Counter("nats_latency_published_total", "Messages published on the measurement subject")
RECEIVED = Counter("nats_latency_received_total", "Messages collected on the measurement subject")
PUBLISH_DELAY = Gauge("nats_latency_publish_delay_seconds", "Current inter-publish pacing delay")


def serve(port):
    try:
        start_http_server(port)
    except OSError as e:
        raise ConfigError(f"could not serve metrics on port {port}: {e}") from e
    log.info("Prometheus metrics available on http://127.0.0.1:%d/metrics", port)
