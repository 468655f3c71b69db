"""
xisfits - Command line tool to convert XISF images to FITS

Logging:
    - Progress is logged to the console (stdout)
    - Use --log-file to also write logs to a file
    - Use --quiet to suppress console output
    - Use --verbose for detailed debug logging

Usage:
    xisfits [options] input.xisf output.fits

Options:
    -h, --help          Show this help message and exit
    -v, --verbose       Enable verbose logging
    -q, --quiet         Suppress console output
    -c, --config        Path to configuration file (default: xisfits.ini)
    --log-file          Also write logs to the specified file
    --no-overwrite      Fail instead of replacing an existing output file
    --version           Show the version and exit

Exit codes:
    0   Conversion succeeded
    1   Conversion failed (diagnostic on stderr names the failed phase)
    2   Invalid command line
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from . import __version__
from .config import ConfigManager, LoggingConfig, XisfitsConfig, validate_config
from .exceptions import ConfigurationError, XisfitsError
from .file_formats.xisfFile import XISFConverter

APP_NAME = "xisfits"


def setup_logging(verbose=False, quiet=False, log_file=None, config: Optional[LoggingConfig] = None):
    """Setup logging configuration"""
    config = config or LoggingConfig()
    if verbose:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, config.level.value)

    handlers = []
    log_file = log_file or config.file_path
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='a'))
    if not quiet and config.console_output:
        handlers.append(logging.StreamHandler(sys.stdout))
    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=log_level,
        format=config.format,
        handlers=handlers,
        force=True,
    )
    return logging.getLogger(APP_NAME)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Convert an XISF image (UInt8/UInt16/UInt32 samples) to a FITS file.",
    )
    parser.add_argument("input_file", help="Input filename (XISF format)")
    parser.add_argument("output_file", help="Output filename (FITS format)")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging')
    parser.add_argument('-q', '--quiet', action='store_true',
                        help='Suppress console output')
    parser.add_argument('-c', '--config',
                        help='Path to configuration file (default: xisfits.ini)')
    parser.add_argument('--log-file',
                        help='Also write logs to the specified file')
    parser.add_argument('--no-overwrite', action='store_true',
                        help='Fail instead of replacing an existing output file')
    parser.add_argument('--version', action='version', version=f"{APP_NAME} {__version__}")
    return parser


def load_config(config_path: Optional[str]) -> XisfitsConfig:
    """Load configuration, failing if an explicitly named file is missing."""
    if config_path is not None:
        if not os.path.exists(config_path):
            raise ConfigurationError(f"Configuration file not found: {config_path}",
                                     error_code="CONFIG_NOT_FOUND")
    return ConfigManager(config_path).load_config()


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command line tool and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        if args.log_file:
            config.logging.file_path = args.log_file
            validate_config(config)
        logger = setup_logging(args.verbose, args.quiet, args.log_file, config.logging)
    except ConfigurationError as e:
        print(f"{APP_NAME}: configuration error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"{APP_NAME}: configuration error: cannot open log file: {e}", file=sys.stderr)
        return 1

    if args.no_overwrite:
        config.conversion.overwrite = False

    logger.info(f"Converting {args.input_file} -> {args.output_file}")

    try:
        XISFConverter(args.input_file, config).convert_to_fits(args.output_file)
    except XisfitsError as e:
        phase = e.phase or "conversion"
        print(f"{APP_NAME}: {phase} failed: {type(e).__name__}: {e}", file=sys.stderr)
        return 1

    logger.info("Conversion completed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
