# nats_latency/cli.py
# Usage:
#   nats-latency --tr 1000 --tt 5s --sz 64
#   python -m nats_latency.cli --tt 10s
#   nats-latency --sa nats://a:4222 --sb nats://b:4222 --json-out run.json
import argparse, asyncio, logging, sys, time
import uvloop

from . import client, report
from .config import MIN_PAYLOAD, RunConfig, connect_options, load_settings
from .errors import ConfigError, LatencyTestError
from .metrics import serve as serve_metrics
from .runner import run_latency_test
from .stats import summarize

log = logging.getLogger("nats_latency")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="nats-latency",
        description="Measure end-to-end NATS publish/subscribe latency at a paced rate",
    )
    parser.add_argument("--config", help="YAML settings file (default: config/latency.yaml)")
    parser.add_argument("--sa", dest="pub_server", help="Server A (Publish)")
    parser.add_argument("--sb", dest="sub_server", help="Server B (Subscribe)")
    parser.add_argument("--sz", dest="msg_size", type=int, help="Message size in bytes")
    parser.add_argument("--tr", dest="target_rate", type=int, help="Rate in msgs/sec")
    parser.add_argument("--tt", dest="test_duration", help="Test duration, e.g. 5s, 1m30s")
    parser.add_argument("--secure", action="store_true", default=None,
                        help="Enable TLS without verification")
    parser.add_argument("--tls_ca", dest="tls_ca", help="TLS Certificate CA file")
    parser.add_argument("--tls_key", dest="tls_key", help="TLS Private key file")
    parser.add_argument("--tls_cert", dest="tls_cert", help="TLS Certificate")
    parser.add_argument("--creds", dest="creds", help="User Credentials file")
    parser.add_argument("--metrics-port", dest="metrics_port", type=int,
                        help="serve Prometheus metrics on this port during the run")
    parser.add_argument("--raw-out", dest="raw_out", help="write raw latencies (ns, one per line)")
    parser.add_argument("--json-out", dest="json_out", help="write the summary as JSON")
    parser.add_argument("--log-level", dest="log_level", help="DEBUG, INFO, WARNING, ...")
    return parser


async def run(cfg, settings):
    opts = connect_options(cfg)
    pnc = await client.connect(cfg.pub_server, opts, name="ServerA")
    try:
        snc = await client.connect(cfg.sub_server, opts, name="ServerB")
        try:
            # quick RTT calculations
            pub_rtt = await client.measure_rtt(pnc)
            sub_rtt = await client.measure_rtt(snc)
            report.print_rtt(pub_rtt, sub_rtt)
            report.print_config(cfg)

            result = await run_latency_test(cfg, pnc, snc)
        finally:
            await client.close(snc)
    finally:
        await client.close(pnc)

    if settings.get("raw_out"):
        report.write_raw_samples(settings["raw_out"], result.samples)

    summary = summarize(
        result.samples,
        cfg.msg_size,
        result.pub_elapsed_ns,
        result.sub_elapsed_ns,
        first_pub_ns=result.first_pub_ns,
    )
    report.print_summary(summary)

    if settings.get("json_out"):
        report.write_json_summary(settings["json_out"], cfg, summary,
                                  rtt={"pub": pub_rtt, "sub": sub_rtt})
    return summary


def setup_logging(level):
    name = str(level).upper()
    if not isinstance(logging.getLevelName(name), int):
        raise ConfigError(f"invalid log level {level!r}")
    logging.basicConfig(
        level=name,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv=None):
    started_at = time.time_ns()
    args = build_parser().parse_args(argv)
    overrides = {k: v for k, v in vars(args).items() if k != "config"}

    try:
        settings = load_settings(args.config, overrides)
        setup_logging(settings["log_level"])
        cfg = RunConfig.from_settings(settings, started_at_ns=started_at)

        if cfg.msg_size < MIN_PAYLOAD:
            print(f"Message Payload Size must be at least {MIN_PAYLOAD} bytes", file=sys.stderr)
            return 0

        if settings.get("metrics_port"):
            serve_metrics(int(settings["metrics_port"]))

        loop = uvloop.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            loop.run_until_complete(run(cfg, settings))
        finally:
            loop.close()
            asyncio.set_event_loop(None)
    except LatencyTestError as e:
        log.error("latency test failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
