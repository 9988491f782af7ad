"""BetaCrew exchange client entry point."""

import argparse
import asyncio
import logging
import sys

from betacrew_client.const import (
    BETACREW_CONNECT_TIMEOUT,
    BETACREW_DEBUG,
    BETACREW_HOST,
    BETACREW_IDLE_TIMEOUT,
    BETACREW_IO_TIMEOUT,
    BETACREW_LOG_FORMAT,
    BETACREW_MAX_RESEND_ATTEMPTS,
    BETACREW_METRICS_PORT,
    BETACREW_OUTPUT_FILE,
    BETACREW_PORT,
    BETACREW_VERSION,
)
from betacrew_client.correlation import run_context
from betacrew_client.logging_abstraction import setup_logging
from betacrew_client.metrics import start_metrics_server
from betacrew_client.orchestrator import ResendOrchestrator, RunResult
from betacrew_client.protocol.exceptions import ExchangeProtocolError
from betacrew_client.transport import ConnectionManager, RetryPolicy, TCPConnection

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INCOMPLETE = 2


def build_orchestrator(args: argparse.Namespace) -> ResendOrchestrator:
    """Wire transport, connection manager and retry policy from CLI args."""
    conn = TCPConnection(
        args.host,
        args.port,
        connect_timeout=args.connect_timeout,
        io_timeout=args.io_timeout,
        idle_timeout=args.idle_timeout,
    )
    return ResendOrchestrator(
        ConnectionManager(conn),
        args.output,
        retry_policy=RetryPolicy(max_attempts=args.max_resend_attempts),
    )


async def main_async(args: argparse.Namespace) -> int:
    """Async main entry point."""
    logger = logging.getLogger(__name__)

    if args.metrics_port:
        try:
            start_metrics_server(args.metrics_port)
            logger.info("Metrics server started on port %d", args.metrics_port)
        except OSError:
            logger.exception("Failed to start metrics server")
            return EXIT_FATAL

    with run_context() as run_id:
        logger.info(
            "BetaCrew client %s starting run %s against %s:%d",
            BETACREW_VERSION,
            run_id,
            args.host,
            args.port,
        )
        try:
            result: RunResult = await build_orchestrator(args).run()
        except ExchangeProtocolError:
            logger.exception("Run failed")
            return EXIT_FATAL

        if not result.complete:
            logger.error(
                "Saved %d packets to %s with %d sequences permanently missing: %s",
                result.packets_saved,
                result.output_path,
                len(result.permanently_missing),
                result.permanently_missing,
            )
            return EXIT_INCOMPLETE

        logger.info(
            "Saved %d packets to %s (%d recovered by resend)",
            result.packets_saved,
            result.output_path,
            len(result.recovered),
        )
        return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="betacrew-client",
        description="Stream all packets from the BetaCrew exchange, fill sequence gaps and save them as JSON",
    )
    parser.add_argument("--host", default=BETACREW_HOST, help=f"Exchange host (default: {BETACREW_HOST})")
    parser.add_argument("--port", type=int, default=BETACREW_PORT, help=f"Exchange port (default: {BETACREW_PORT})")
    parser.add_argument(
        "--idle-timeout",
        type=float,
        default=BETACREW_IDLE_TIMEOUT,
        help=f"Seconds without data before a session is closed (default: {BETACREW_IDLE_TIMEOUT})",
    )
    parser.add_argument(
        "--connect-timeout",
        type=float,
        default=BETACREW_CONNECT_TIMEOUT,
        help=f"Connection timeout in seconds (default: {BETACREW_CONNECT_TIMEOUT})",
    )
    parser.add_argument(
        "--io-timeout",
        type=float,
        default=BETACREW_IO_TIMEOUT,
        help=f"Write timeout in seconds (default: {BETACREW_IO_TIMEOUT})",
    )
    parser.add_argument(
        "--output",
        default=BETACREW_OUTPUT_FILE,
        help=f"Output JSON file (default: {BETACREW_OUTPUT_FILE})",
    )
    parser.add_argument(
        "--max-resend-attempts",
        type=int,
        default=BETACREW_MAX_RESEND_ATTEMPTS,
        help=f"Attempts per missing sequence (default: {BETACREW_MAX_RESEND_ATTEMPTS})",
    )
    parser.add_argument(
        "--log-level",
        default="DEBUG" if BETACREW_DEBUG else "INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        default=BETACREW_LOG_FORMAT,
        choices=["human", "json"],
        help=f"Log output format (default: {BETACREW_LOG_FORMAT})",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=BETACREW_METRICS_PORT,
        help="Prometheus metrics port, 0 to disable (default: %(default)s)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_format)
    return asyncio.run(main_async(args))


if __name__ == "__main__":
    sys.exit(main())
