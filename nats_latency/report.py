# nats_latency/report.py
# Plain text report on stdout, plus the optional raw sample and JSON dumps.
import orjson

from .errors import ConfigError
from .stats import byte_size, bps, format_duration, percentile_label

RULE = "=============================="


def print_rtt(pub_rtt_us, sub_rtt_us):
    print(RULE)
    print(f"Pub Server RTT : {pub_rtt_us} µs")
    print(f"Sub Server RTT : {sub_rtt_us} µs")


def print_config(cfg):
    print(f"Message Payload: {byte_size(cfg.msg_size)}")
    print(f"Target Duration: {cfg.test_duration}")
    print(f"Target Msgs/Sec: {cfg.target_rate}")
    print(f"Target Band/Sec: {bps(cfg.target_rate * cfg.msg_size * 2)}")
    print(RULE)


def print_summary(summary):
    print("HDR Percentile")
    for p, ns in summary.percentiles:
        label = percentile_label(p) + ":"
        print(f"{label:<10}{format_duration(ns)}")
    print(RULE)
    print(f"Actual Msgs/Sec: {summary.rate}")
    print(f"Actual Band/Sec: {bps(summary.bandwidth)}")
    print(f"Minimum Latency: {format_duration(summary.min_ns)}")
    print(f"Median Latency : {format_duration(summary.median_ns)}")
    print(f"Maximum Latency: {format_duration(summary.max_ns)}")
    print(f"1st Sent Wall Time : {format_duration(summary.first_pub_ns)}")
    print(f"Last Sent Wall Time: {format_duration(summary.pub_elapsed_ns)}")
    print(f"Last Recv Wall Time: {format_duration(summary.sub_elapsed_ns)}")


def write_raw_samples(path, samples):
    """One latency in nanoseconds per line, in arrival order."""
    try:
        with open(path, "w") as f:
            for ns in samples:
                f.write(f"{ns}\n")
    except OSError as e:
        raise ConfigError(f"could not write raw samples to {path}: {e}") from e


def write_json_summary(path, cfg, summary, rtt=None):
    doc = {
        "config": {
            "pub_server": cfg.pub_server,
            "sub_server": cfg.sub_server,
            "msg_size": cfg.msg_size,
            "target_rate": cfg.target_rate,
            "test_duration": cfg.test_duration,
            "num_pubs": cfg.num_pubs,
        },
        "rtt_us": rtt or {},
        "result": summary.as_dict(),
    }
    try:
        with open(path, "wb") as f:
            f.write(orjson.dumps(doc, option=orjson.OPT_INDENT_2))
    except OSError as e:
        raise ConfigError(f"could not write JSON summary to {path}: {e}") from e
