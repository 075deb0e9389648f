"""Entry point: python -m mongo_statsd."""

from __future__ import annotations

import argparse
import asyncio
import sys


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mongo-statsd",
        description="Poll MongoDB serverStatus and forward it to StatsD as gauges",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to configuration YAML file",
        default=None,
    )
    parser.add_argument("--interval", help="Polling interval, e.g. 5s or 1m30s")
    parser.add_argument("--mongo-url", help="MongoDB URL to gather metrics from (mongodb://...)")
    parser.add_argument("--connect-timeout", type=float, help="MongoDB connect timeout in seconds")
    parser.add_argument("--statsd-host", help="StatsD host")
    parser.add_argument("--statsd-port", type=int, help="StatsD port")
    parser.add_argument("--statsd-prefix", help="Metric name prefix")
    parser.add_argument("--hosted-graphite-key", help="API key prepended to the metric prefix")
    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Enable debug logging",
    )
    parser.add_argument(
        "--abort-on-fetch-error",
        action="store_true",
        default=None,
        help="Exit on the first failed serverStatus instead of skipping the tick",
    )
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, object]:
    return {
        "interval": args.interval,
        "mongo.url": args.mongo_url,
        "mongo.connect_timeout": args.connect_timeout,
        "statsd.host": args.statsd_host,
        "statsd.port": args.statsd_port,
        "statsd.prefix": args.statsd_prefix,
        "statsd.hosted_graphite_key": args.hosted_graphite_key,
        "debug": args.debug,
        "abort_on_fetch_error": args.abort_on_fetch_error,
    }


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    from mongo_statsd.app import EXIT_CONFIG, EXIT_OK, Application, setup_logging
    from mongo_statsd.config.settings import load_config
    from mongo_statsd.errors import ConfigError

    try:
        settings = load_config(args.config, overrides=_overrides(args))
    except ConfigError as exc:
        parser.exit(EXIT_CONFIG, f"{parser.prog}: {exc}\n")

    setup_logging(settings.debug)
    app = Application(settings)
    try:
        code = asyncio.run(app.run())
    except KeyboardInterrupt:
        code = EXIT_OK
    sys.exit(code)


if __name__ == "__main__":
    main()
