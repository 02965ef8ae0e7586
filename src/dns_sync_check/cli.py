"""
Command-line interface for the DNS sync probe (monitoring-plugin style).

Flow:
  1) Parse + validate all flags up-front (ConfigurationError -> UNKNOWN)
  2) Set up logging from the validated verbosity
  3) Resolve master / serial / slaves and evaluate (ResolutionError -> UNKNOWN)
  4) Print exactly one status line (or JSON) and exit with the state's code
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .errors import ConfigurationError, ResolutionError
from .formatter import format_error, format_json, format_result
from .models import SERIAL_MAX, CheckConfig, ToleranceConfig
from .probe import run_check
from .states import State
from .targets import require_domain, require_server


class _Parser(argparse.ArgumentParser):
    # argparse exits with status 2 (CRITICAL for a monitoring system); report
    # bad flags as configuration errors instead.
    def error(self, message: str) -> None:
        raise ConfigurationError(message)


def build_parser() -> argparse.ArgumentParser:
    p = _Parser(
        prog="dns-sync-check",
        description="Check that all slave name servers of a zone carry the master's SOA serial.",
        add_help=False,
    )
    p.add_argument("-d", "--domain", help="Zone to check (required)")
    p.add_argument("-H", "--master", help="Master server; default: MNAME of the zone's SOA")
    p.add_argument(
        "-S", "--slaves", action="append", default=[], metavar="SLAVES",
        help="Space-separated slave list (may be repeated); default: NS set published by the master",
    )
    p.add_argument("-s", "--serial", type=int, help="Master serial; default: SOA serial queried from the master")
    p.add_argument("-w", "--warning", type=int, metavar="FAILS", help="Warn when more than FAILS slaves fail")
    p.add_argument("-c", "--critical", type=int, metavar="FAILS", help="Critical when more than FAILS slaves fail")
    p.add_argument("-t", "--tolerance", type=int, default=0, help="Allowed serial lag (0 = exact match, default)")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Verbose output (repeat for debug)")
    p.add_argument("-h", "--help", action="store_true", help="Show this help and exit")
    p.add_argument("-V", "--version", action="store_true", help="Show version and exit")

    # Query tuning
    p.add_argument("--timeout", type=float, default=3.0, help="Per-query timeout in seconds (default 3)")
    p.add_argument("--retries", type=int, default=0, help="Extra attempts on query timeout (default 0)")
    p.add_argument("--port", type=int, default=53, help="DNS port (default 53)")
    p.add_argument("--workers", type=int, default=1, help="Query slaves in parallel with N threads (default 1)")
    p.add_argument("--json", dest="as_json", action="store_true", help="Output JSON instead of the status line")
    return p


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def build_config(args: argparse.Namespace) -> CheckConfig:
    """
    Validate + normalize parsed flags.

    Raises:
        ConfigurationError: on any invalid or contradictory value.
    """
    if not args.domain:
        raise ConfigurationError("No domain given (-d DOMAIN)")
    domain = require_domain(args.domain)

    master = require_server(args.master) if args.master else None

    slaves: List[str] = []
    for chunk in args.slaves:
        for s in chunk.split():
            s = require_server(s)
            if s not in slaves:
                slaves.append(s)

    if args.serial is not None and not 0 <= args.serial <= SERIAL_MAX:
        raise ConfigurationError(f"Serial must be between 0 and {SERIAL_MAX} (got {args.serial})")

    if args.timeout <= 0:
        raise ConfigurationError(f"Timeout must be > 0 (got {args.timeout})")
    if args.retries < 0:
        raise ConfigurationError(f"Retries must be >= 0 (got {args.retries})")
    if args.workers < 1:
        raise ConfigurationError(f"Workers must be >= 1 (got {args.workers})")
    if not 0 < args.port < 65536:
        raise ConfigurationError(f"Invalid port {args.port}")

    thresholds = ToleranceConfig(
        warn=args.warning,
        crit=args.critical,
        tolerance=args.tolerance,
    ).validate()

    return CheckConfig(
        domain=domain,
        master=master,
        slaves=tuple(slaves),
        serial=args.serial,
        thresholds=thresholds,
        verbosity=args.verbose,
        timeout=args.timeout,
        retries=args.retries,
        workers=args.workers,
        port=args.port,
        as_json=args.as_json,
    )


def configure_logging(verbosity: int) -> None:
    """0 = warnings only, 1 = progress, 2+ = debug. Always to stdout."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        force=True,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entrypoint.

    Returns:
        Monitoring exit code (State value).
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except ConfigurationError as e:
        print(format_error(e), file=sys.stderr)
        return State.UNKNOWN

    if args.help:
        parser.print_help()
        return State.UNKNOWN
    if args.version:
        print(f"{parser.prog} {__version__}")
        return State.UNKNOWN

    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(format_error(e), file=sys.stderr)
        return State.UNKNOWN

    configure_logging(config.verbosity)

    try:
        outcome = run_check(config)
    except (ConfigurationError, ResolutionError) as e:
        print(format_error(e), file=sys.stderr)
        return State.UNKNOWN

    result = outcome.result
    if config.as_json:
        print(format_json(result, outcome.domain, outcome.master))
    else:
        print(format_result(result))
    return result.state


if __name__ == "__main__":
    raise SystemExit(main())
