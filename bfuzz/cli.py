"""Command line entry point."""
import argparse
import asyncio
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.markup import escape

from . import __version__
from .fuzzer import ConsoleReporter, FuzzerException, fuzz
from .utils import build_config, get_config_path, load_settings, setup_logging

BANNER = r""" _       ___
| |     / __)            v{version}
| |__ _| |__ _   _ _____ _____
|  _ (_   __) | | (___  |___  )
| |_) )| |  | |_| |/ __/ / __/
|____/ |_|  |____/(_____|_____)
Blazing Fast Basic Port Fuzzer"""

DEFAULT_CONFIG = "bfuzz.yaml"

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="bfuzz",
        description="Fuzz a TCP service with every line of a wordlist",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s -w commands.txt -t 10.10.10.5 -p 1337
  %(prog)s -w tokens.txt -t target.local -p 9000 -i 'Invalid\\n' -b 200
  %(prog)s -w verbs.txt -t 127.0.0.1 -p 21 -r '^5\\d\\d ' --timeout 500
        """
    )
    p.add_argument("-w", "--wordlist", help="Specify the wordlist")
    p.add_argument("-t", "--target", help="The host to fuzz")
    p.add_argument("-p", "--port", type=int, help="The port to fuzz")
    p.add_argument("-b", "--batch-size", type=int, metavar="SIZE",
                   help="Request batch size (default: 1000)")
    p.add_argument("-i", "--ignore", action="append", metavar="RESPONSE",
                   help="Ignores responses with the specific value (repeatable)")
    p.add_argument("-r", "--ignore-regex", action="append", metavar="PATTERN",
                   help="Ignores responses matching the regular expression (repeatable)")
    p.add_argument("-n", "--no-newline", action="store_true",
                   help="Do not fuzz with trailing new line")
    p.add_argument("--timeout", type=int, metavar="MS",
                   help="Response timeout per read in milliseconds (default: 250)")
    p.add_argument("--retries", type=int, help="Attempts per payload (default: 3)")
    p.add_argument("-c", "--config", help=f"YAML config file (default: config/{DEFAULT_CONFIG} if present)")
    p.add_argument("--log-file", help="Also write logs to this file")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    p.add_argument("--no-progress", action="store_true", help="Do not render the progress bar")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def _config_path(arg: Optional[str]) -> Optional[str]:
    if arg:
        return arg
    default = get_config_path(DEFAULT_CONFIG)
    return str(default) if default.exists() else None


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    console = Console(highlight=False)

    overrides = {
        "host": args.target,
        "port": args.port,
        "wordlist": args.wordlist,
        "batch_size": args.batch_size,
        "timeout_ms": args.timeout,
        "retries": args.retries,
        "ignore": args.ignore,
        "ignore_regex": args.ignore_regex,
        "newline": False if args.no_newline else None,
    }

    try:
        settings = load_settings()
        setup_logging("DEBUG" if args.verbose else settings.log_level, args.log_file or settings.log_file)
        console.print(f"[blue]{BANNER.format(version=__version__)}[/blue]\n")
        config = build_config(overrides, _config_path(args.config), settings)
        reporter = ConsoleReporter(console, show_progress=not args.no_progress)
        asyncio.run(fuzz(config, reporter))
    except KeyboardInterrupt:
        console.print("\n\nScan interrupted by user")
        return 130
    except (FuzzerException, FileNotFoundError) as e:
        logger.debug("Fatal startup error", exc_info=True)
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
