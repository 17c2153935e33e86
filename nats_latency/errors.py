# nats_latency/errors.py


class LatencyTestError(Exception):
    """Base for every fatal condition of a latency run."""

    def __init__(self, details):
        super().__init__(details)
        self.details = details

    def __str__(self):
        return self.details


class ConfigError(LatencyTestError):
    pass


class ConnectError(LatencyTestError):
    pass


class FlushError(LatencyTestError):
    pass


class PublishError(LatencyTestError):
    pass


class SubscribeError(LatencyTestError):
    pass


class MalformedMessage(LatencyTestError):
    """A received payload is too short to carry the send timestamp."""


class HistogramRangeError(LatencyTestError):
    """A sample fell outside the bounds the histogram was built with."""
