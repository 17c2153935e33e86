"""End-to-end NATS publish/subscribe latency test.

Publishes timestamped messages on one server at a paced rate, receives them on
another (or the same) server, and reports the latency distribution.
"""

__version__ = "0.1.0"
