"""Configuration module — frozen dataclasses loaded from environment variables
and overridden by command-line flags."""

import os
import argparse
from dataclasses import dataclass


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class LogpostConfig:
    host: str
    path: str
    gzip: bool = False
    cookies: bool = False
    max_messages: int = 10
    timeout_millis: int = 1000
    max_sockets: int = 32
    secure: bool = True
    verify_certs: bool = True
    ca_file: str = ""
    keepalive_timeout: float = 5.0
    socket_timeout: float = 10.0

    def __post_init__(self):
        if not self.host:
            raise ValueError("host must not be empty")
        if not self.path.startswith("/"):
            raise ValueError(f"path must start with '/': {self.path!r}")
        if self.max_messages < 1:
            raise ValueError(f"max_messages must be >= 1, got {self.max_messages}")
        if self.timeout_millis < 1:
            raise ValueError(f"timeout_millis must be >= 1, got {self.timeout_millis}")
        if self.max_sockets < 1:
            raise ValueError(f"max_sockets must be >= 1, got {self.max_sockets}")

    @property
    def url(self) -> str:
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.host}{self.path}"

    @property
    def flush_interval(self) -> float:
        """Flush interval in seconds."""
        return self.timeout_millis / 1000.0


@dataclass(frozen=True)
class PerfRunConfig:
    logpost: LogpostConfig
    run_millis: int = 10000
    batch_size: int = 50
    debug: bool = False


@dataclass(frozen=True)
class SumoRunConfig:
    logpost: LogpostConfig
    token: str
    run_millis: int = 10 * 60 * 1000
    batch_size: int = 50
    debug: bool = False


SUMO_HOST = "collectors.sumologic.com"
SUMO_PATH_PREFIX = "/receiver/v1/http/"


def load_perf_config(argv=None) -> PerfRunConfig:
    """Build the performance-driver config from env vars, then CLI args.

    Pass argv for testability; when None, argparse reads sys.argv.
    """
    env_host = os.environ.get("LOGPOST_HOST")
    env_path = os.environ.get("LOGPOST_PATH")
    env_run = os.environ.get("LOGPOST_RUN_MILLIS")
    env_batch = os.environ.get("LOGPOST_BATCH")
    env_max_messages = int(os.environ.get("LOGPOST_MAX_MESSAGES", "100"))
    env_timeout = int(os.environ.get("LOGPOST_TIMEOUT_MILLIS", "1000"))
    env_max_sockets = int(
        os.environ.get("LOGPOST_MAX_SOCKETS", str(LogpostConfig.max_sockets))
    )
    env_gzip = _parse_bool(os.environ.get("LOGPOST_GZIP", "false"))
    env_secure = _parse_bool(os.environ.get("LOGPOST_SECURE", "true"))
    env_verify = _parse_bool(os.environ.get("LOGPOST_VERIFY_CERTS", "true"))
    env_debug = _parse_bool(os.environ.get("LOGPOST_DEBUG", "false"))

    parser = argparse.ArgumentParser(description="Logpost performance driver")
    parser.add_argument(
        "--run", type=int, required=env_run is None, default=None,
        help="Run time in milliseconds",
    )
    parser.add_argument(
        "--batch", type=int, required=env_batch is None, default=None,
        help="Messages submitted per generator tick",
    )
    parser.add_argument("--host", required=env_host is None, default=None)
    parser.add_argument("--path", required=env_path is None, default=None)
    parser.add_argument(
        "--buffer", type=int, default=None,
        help="Buffered messages before an early flush",
    )
    parser.add_argument(
        "--timeout", type=int, default=None, help="Flush interval in milliseconds"
    )
    parser.add_argument("--gzip", action="store_true", default=False)
    parser.add_argument("--max-sockets", type=int, default=None)
    parser.add_argument(
        "--insecure", action="store_true", default=False,
        help="Post over plain http instead of https",
    )
    parser.add_argument("--debug", action="store_true", default=False)
    parser.add_argument("--skip-cert-validation", action="store_true", default=False)

    args = parser.parse_args(argv)

    logpost = LogpostConfig(
        host=args.host if args.host is not None else env_host,
        path=args.path if args.path is not None else env_path,
        gzip=args.gzip or env_gzip,
        cookies=False,
        max_messages=args.buffer if args.buffer is not None else env_max_messages,
        timeout_millis=args.timeout if args.timeout is not None else env_timeout,
        max_sockets=args.max_sockets if args.max_sockets is not None else env_max_sockets,
        secure=False if args.insecure else env_secure,
        verify_certs=False if args.skip_cert_validation else env_verify,
    )
    return PerfRunConfig(
        logpost=logpost,
        run_millis=args.run if args.run is not None else int(env_run),
        batch_size=args.batch if args.batch is not None else int(env_batch),
        debug=args.debug or env_debug,
    )


def load_sumo_config(argv=None) -> SumoRunConfig:
    """Build the hosted-collector driver config; the token is the only input."""
    parser = argparse.ArgumentParser(description="Logpost hosted collector driver")
    parser.add_argument("token", help="HTTP source token")
    parser.add_argument("--debug", action="store_true", default=False)
    parser.add_argument("--skip-cert-validation", action="store_true", default=False)

    args = parser.parse_args(argv)

    logpost = LogpostConfig(
        host=os.environ.get("LOGPOST_HOST", SUMO_HOST),
        path=SUMO_PATH_PREFIX + args.token,
        gzip=True,
        cookies=False,
        max_messages=1000,
        timeout_millis=1000,
        verify_certs=not args.skip_cert_validation,
    )
    return SumoRunConfig(
        logpost=logpost,
        token=args.token,
        debug=args.debug or _parse_bool(os.environ.get("LOGPOST_DEBUG", "false")),
    )


@dataclass(frozen=True)
class CollectorConfig:
    host: str = "0.0.0.0"
    port: int = 8080
    cookie: str = ""
    status: int = 200


def load_collector_config() -> CollectorConfig:
    """Build CollectorConfig from environment variables with sensible defaults."""
    return CollectorConfig(
        host=os.environ.get("COLLECTOR_HOST", CollectorConfig.host),
        port=int(os.environ.get("COLLECTOR_PORT", CollectorConfig.port)),
        cookie=os.environ.get("COLLECTOR_COOKIE", CollectorConfig.cookie),
        status=int(os.environ.get("COLLECTOR_STATUS", CollectorConfig.status)),
    )
