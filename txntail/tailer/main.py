#!/usr/bin/env python3
"""
Command-line entry point for tailing a transaction log.

Usage:
    # Print every transaction, then keep following the file
    txntail /var/lib/zookeeper/version-2/log.100000001
    
    # Include payloads and full record dumps
    txntail --verbose --show-data log.100000001
"""

import argparse
import signal
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from txntail.core.log import HeaderError, InvalidMagicError, TxnLogError
from txntail.tailer.driver import CancellableWait, LogTailer, TailerConfig, TailInterrupted
from txntail.utils.config import Config
from txntail.utils.logging import configure_logging, get_logger

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="txntail",
        description="Render a transaction log as readable history and follow it as it grows",
    )
    
    parser.add_argument(
        "log_file",
        help="Transaction log file to read",
    )
    
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Dump each decoded record and announce tail waits (uses the longer poll interval)",
    )
    
    parser.add_argument(
        "--show-data",
        action="store_true",
        help="Print the payload of each record that carries one",
    )
    
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML configuration file (default: $TXNTAIL_CONFIG)",
    )
    
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Diagnostic logging level (default: WARNING)",
    )
    
    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=["console", "json"],
        help="Diagnostic log format (default: console)",
    )
    
    return parser.parse_args(argv)


def _load_config(args: argparse.Namespace) -> Config:
    config = Config(args.config)
    if args.log_level:
        config.set("logging.level", args.log_level)
    if args.log_format:
        config.set("logging.format", args.log_format)
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.
    
    Returns:
        Process exit code
    """
    args = parse_args(argv)
    
    try:
        config = _load_config(args)
        tailer_config = TailerConfig.from_config(config)
        configure_logging(
            log_level=config.get("logging.level"),
            log_format=config.get("logging.format"),
            log_output="stderr",
        )
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return EXIT_USAGE
    
    logger = get_logger("txntail")
    logger.debug("Loaded configuration", config=config.to_dict())
    
    path = Path(args.log_file)
    if not path.is_file():
        print(f"No such log file: {path}", file=sys.stderr)
        return EXIT_USAGE
    
    waiter = CancellableWait()
    received = []
    
    # Runs between bytecodes of the main thread: no logging, no locks
    def handle_signal(signum, frame):
        received.append(signum)
        waiter.cancel()
    
    previous_handlers = {
        sig: signal.signal(sig, handle_signal) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    
    try:
        tailer = LogTailer(
            path,
            config=tailer_config,
            show_data=args.show_data,
            verbose=args.verbose,
            reporter=logger.bind(path=str(path)),
            waiter=waiter,
        )
        tailer.run()
    
    except InvalidMagicError:
        print(f"Invalid magic number for {path}", file=sys.stderr)
        return EXIT_USAGE
    
    except HeaderError as e:
        print(f"Invalid log file header for {path}: {e}", file=sys.stderr)
        return EXIT_USAGE
    
    except TailInterrupted as e:
        logger.warning(
            "Stopped tailing",
            records=e.records_processed,
            signal=signal.Signals(received[0]).name if received else None,
        )
        return EXIT_INTERRUPTED
    
    except TxnLogError as e:
        logger.error("Tailing failed", error=str(e), error_type=type(e).__name__)
        return EXIT_FAILURE
    
    finally:
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)
        waiter.close()
    
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
