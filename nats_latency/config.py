# nats_latency/config.py
# Settings come from three layers: built-in defaults, the YAML file
# (config/latency.yaml unless --config points elsewhere), then CLI flags.
import os, re, ssl
from dataclasses import dataclass
from pathlib import Path

import yaml

from .codec import TIMESTAMP_SIZE
from .errors import ConfigError

REPO_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG = REPO_ROOT / "config" / "latency.yaml"

MIN_PAYLOAD = TIMESTAMP_SIZE

DEFAULTS = {
    "pub_server": "nats://localhost:4222",
    "sub_server": "nats://localhost:4222",
    "msg_size": 8,
    "target_rate": 1000,
    "test_duration": "5s",
    "secure": False,
    "tls_ca": None,
    "tls_key": None,
    "tls_cert": None,
    "creds": None,
    "metrics_port": None,
    "raw_out": None,
    "json_out": None,
    "log_level": os.environ.get("LOG_LEVEL", "WARNING"),
}

_UNITS = {
    "ns": 1e-9, "nsec": 1e-9, "nanosecond": 1e-9, "nanoseconds": 1e-9,
    "us": 1e-6, "µs": 1e-6, "usec": 1e-6, "microsecond": 1e-6, "microseconds": 1e-6,
    "ms": 1e-3, "msec": 1e-3, "millisecond": 1e-3, "milliseconds": 1e-3,
    "s": 1.0, "sec": 1.0, "secs": 1.0, "second": 1.0, "seconds": 1.0,
    "m": 60.0, "min": 60.0, "mins": 60.0, "minute": 60.0, "minutes": 60.0,
    "h": 3600.0, "hr": 3600.0, "hrs": 3600.0, "hour": 3600.0, "hours": 3600.0,
    "d": 86400.0, "day": 86400.0, "days": 86400.0,
}
_TERM_RE = re.compile(r"\s*(\d+(?:\.\d+)?|\.\d+)\s*([a-zµ]*)", re.IGNORECASE)


def parse_duration(text):
    """Parse "5s", "1m30s", "250ms", "1.5 minutes" or a bare number of seconds."""
    s = str(text).strip()
    if not s:
        raise ConfigError("Error converting test duration: empty duration")
    total = 0.0
    pos = 0
    while pos < len(s):
        m = _TERM_RE.match(s, pos)
        if not m or m.end() == pos:
            raise ConfigError(f"Error converting test duration: cannot parse {text!r}")
        number, unit = m.group(1), m.group(2).lower()
        if not unit:
            # a bare number only makes sense as the whole string
            if pos != 0 or m.end() != len(s.rstrip()):
                raise ConfigError(f"Error converting test duration: missing unit in {text!r}")
            unit = "s"
        if unit not in _UNITS:
            raise ConfigError(f"Error converting test duration: unknown unit {unit!r}")
        total += float(number) * _UNITS[unit]
        pos = m.end()
        while pos < len(s) and s[pos].isspace():
            pos += 1
    return total


def load_settings(path=None, overrides=None):
    """Merge defaults, the YAML file and non-None ``overrides``."""
    settings = dict(DEFAULTS)
    cfg_path = Path(path) if path else DEFAULT_CONFIG
    if cfg_path.exists():
        with open(cfg_path, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"{cfg_path}: expected a mapping at the top level")
        settings.update({k: v for k, v in data.items() if k in DEFAULTS})
    elif path:
        raise ConfigError(f"config file not found: {cfg_path}")
    for k, v in (overrides or {}).items():
        if v is not None:
            settings[k] = v
    return settings


@dataclass(frozen=True)
class RunConfig:
    pub_server: str
    sub_server: str
    msg_size: int
    target_rate: int
    test_duration: str
    duration_secs: float
    num_pubs: int
    started_at_ns: int = 0
    secure: bool = False
    tls_ca: str = None
    tls_key: str = None
    tls_cert: str = None
    creds: str = None

    @classmethod
    def from_settings(cls, settings, started_at_ns=0):
        duration = parse_duration(settings["test_duration"])
        try:
            rate = int(settings["target_rate"])
            size = int(settings["msg_size"])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid numeric setting: {e}") from e
        if rate <= 0:
            raise ConfigError("target rate must be > 0 msgs/sec")
        num_pubs = int(round(rate * duration, 6))
        if num_pubs < 1:
            raise ConfigError(
                f"test duration {settings['test_duration']} at {rate} msgs/sec publishes no messages"
            )
        return cls(
            pub_server=settings["pub_server"],
            sub_server=settings["sub_server"],
            msg_size=size,
            target_rate=rate,
            test_duration=str(settings["test_duration"]),
            duration_secs=duration,
            num_pubs=num_pubs,
            started_at_ns=started_at_ns,
            secure=bool(settings.get("secure")),
            tls_ca=settings.get("tls_ca"),
            tls_key=settings.get("tls_key"),
            tls_cert=settings.get("tls_cert"),
            creds=settings.get("creds"),
        )


def tls_context(cfg):
    if not (cfg.secure or cfg.tls_ca or (cfg.tls_cert and cfg.tls_key)):
        return None
    ctx = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    if cfg.tls_ca:
        ctx.load_verify_locations(cafile=cfg.tls_ca)
    elif cfg.secure:
        # --secure alone means TLS without verification
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    if cfg.tls_cert and cfg.tls_key:
        ctx.load_cert_chain(certfile=cfg.tls_cert, keyfile=cfg.tls_key)
    return ctx


def connect_options(cfg):
    """Keyword arguments for ``nats.aio.client.Client.connect``."""
    opts = {}
    if cfg.creds:
        opts["user_credentials"] = cfg.creds
    try:
        ctx = tls_context(cfg)
    except (OSError, ssl.SSLError) as e:
        raise ConfigError(f"could not load TLS files: {e}") from e
    if ctx is not None:
        opts["tls"] = ctx
    return opts
