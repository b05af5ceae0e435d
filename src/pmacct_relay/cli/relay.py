from __future__ import annotations
import argparse
import logging
import sys
from typing import BinaryIO, List, Optional

from pmacct_relay.core.config import ConfigError, RelayConfig
from pmacct_relay.core.pipeline import RelayPipeline
from pmacct_relay.core.registry import TransportRegistry, build_default_registry
from pmacct_relay.core.sequencer import ClockError, TimestampSequencer
from pmacct_relay.transports.base import Connection, Transport, TransportError

log = logging.getLogger("pmacct_relay")

EXIT_OK = 0
EXIT_TRANSPORT = 1
EXIT_CLOCK = 2
EXIT_USAGE = 64

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class _ArgumentParser(argparse.ArgumentParser):
    # argparse exits with 2 on bad usage, which is the clock failure status here
    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="pmacct-relay",
        description="Relay pmacct flow records from stdin to a telemetry backend.",
        epilog="e.g.\n  pmacct -s | pmacct-relay syd1 tcp://localhost:1234",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("collection_point", help="label attached to every point, e.g. syd1")
    parser.add_argument("endpoint", help="transport endpoint, e.g. tcp://localhost:1234")
    parser.add_argument("--batch-period", type=float, default=None, help="seconds between transport flushes")
    parser.add_argument("--max-line-bytes", type=int, default=None, help="skip input lines longer than this")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    return parser


def run(
    argv: Optional[List[str]] = None,
    stdin: Optional[BinaryIO] = None,
    registry: Optional[TransportRegistry] = None,
) -> int:
    """
    Run the relay and return the process exit status.

    stdin and registry can be injected, main() uses sys.stdin and the
    default transports plus PMACCT_RELAY_TRANSPORTS.
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_USAGE

    try:
        config = RelayConfig.from_env(
            args.collection_point,
            args.endpoint,
            batch_period=args.batch_period,
            max_line_bytes=args.max_line_bytes,
            log_level=args.log_level,
        )
    except ConfigError as exc:
        parser.print_usage(sys.stderr)
        sys.stderr.write(f"{parser.prog}: error: {exc}\n")
        return EXIT_USAGE

    logging.basicConfig(level=config.log_level, format=LOG_FORMAT, stream=sys.stderr)

    if registry is None:
        try:
            registry = build_default_registry(config.transports)
        except (ImportError, AttributeError, ValueError) as exc:
            log.error("cannot load transports %s: %s", config.transports, exc)
            return EXIT_USAGE

    try:
        transport = registry.for_endpoint(config.endpoint)
    except TransportError as exc:
        log.error("%s", exc)
        return EXIT_TRANSPORT

    try:
        conn = transport.connect(config.endpoint, config.batch_period)
    except TransportError as exc:
        log.error("cannot connect to %s: %s", config.endpoint, exc)
        _shutdown(transport, EXIT_TRANSPORT)
        return EXIT_TRANSPORT

    code = relay(conn, config, stdin if stdin is not None else sys.stdin.buffer)
    code = _close(conn, code)
    return _shutdown(transport, code)


def relay(conn: Connection, config: RelayConfig, stream: BinaryIO) -> int:
    try:
        sequencer = TimestampSequencer()
    except ClockError as exc:
        log.error("cannot read the wall clock: %s", exc)
        return EXIT_CLOCK

    pipeline = RelayPipeline(conn, sequencer, config.collection_point, config.max_line_bytes)
    log.info("relaying %s records to %s", config.collection_point, config.endpoint)

    try:
        stats = pipeline.run(stream)
    except ClockError as exc:
        log.error("clock failure, stopping: %s (%s)", exc, pipeline.status())
        return EXIT_CLOCK
    except TransportError as exc:
        log.error("transport failure, stopping: %s (%s)", exc, pipeline.status())
        return EXIT_TRANSPORT

    log.info("input exhausted: %s, sequencer %s", stats, sequencer.status())
    return EXIT_OK


def _close(conn: Connection, code: int) -> int:
    try:
        conn.close()
    except TransportError as exc:
        log.error("close failed: %s", exc)
        if code == EXIT_OK:
            return EXIT_TRANSPORT
    return code


def _shutdown(transport: Transport, code: int) -> int:
    try:
        transport.shutdown()
    except TransportError as exc:
        log.error("transport shutdown failed: %s", exc)
        if code == EXIT_OK:
            return EXIT_TRANSPORT
    return code


def main() -> None:
    """
    Console entry point.

    Example:
      pmacct -s -O formatted | pmacct-relay syd1 tcp://localhost:1234
    """
    sys.exit(run())


if __name__ == "__main__":
    main()
