#!/usr/bin/env python3
"""
Private Count Noiser - Main Entry Point
=======================================
Command-line interface for aggregating a census file into per-bucket counts
and releasing a noised version of them.

Usage:
    python main.py --config configs/default.ini
    python main.py --config configs/default.ini --field income --mechanism gaussian --accuracy-index 9
"""

import argparse
import logging
import logging.handlers
import sys
import os
from datetime import datetime
from typing import Optional

from core.config import Config
from core.mechanisms import Mechanism
from engine.noiser import Noiser
from reader.loader import load_dataset


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    log_dir: str = "logs"
) -> logging.Logger:
    """
    Set up logging with console and optional file output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file name. If None, auto-generated.
        log_dir: Directory for log files

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, log_level.upper()))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, log_level.upper()))
    console_format = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S'
    )
    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    if log_file or log_dir:
        os.makedirs(log_dir, exist_ok=True)
        if log_file is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_file = f"noiser_{timestamp}.log"

        log_path = os.path.join(log_dir, log_file)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_format = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s'
        )
        file_handler.setFormatter(file_format)
        logger.addHandler(file_handler)
        logger.info(f"Logging to file: {log_path}")

    return logger


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Private Count Noiser - Release noised per-bucket counts of a census file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run with config file
    python main.py --config configs/default.ini

    # Gaussian noise on income at accuracy level index 9
    python main.py --config configs/default.ini \\
        --field income --mechanism gaussian --accuracy-index 9
        """
    )

    parser.add_argument(
        "--config", "-c",
        required=True,
        help="Path to configuration INI file"
    )

    parser.add_argument(
        "--input", "-i",
        type=str,
        default=None,
        help="Override input data path"
    )

    parser.add_argument(
        "--field", "-f",
        type=str,
        default=None,
        help="Override the field to aggregate"
    )

    parser.add_argument(
        "--mechanism", "-m",
        choices=[m.value for m in Mechanism],
        default=None,
        help="Override the noise mechanism"
    )

    parser.add_argument(
        "--accuracy-index",
        type=int,
        default=0,
        help="Accuracy level index to start from (default: 0)"
    )

    parser.add_argument(
        "--alpha",
        type=float,
        default=None,
        help="Override the tolerated probability of exceeding the accuracy"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-dir",
        type=str,
        default="logs",
        help="Directory for log files (default: logs/)"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate configuration and exit without running"
    )

    return parser.parse_args(argv)


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Apply command-line overrides to configuration."""
    if args.input is not None:
        config.data.input_path = args.input

    if args.field is not None:
        config.data.default_field = args.field

    if args.mechanism is not None:
        config.noise.mechanism = args.mechanism

    if args.alpha is not None:
        config.noise.alpha = args.alpha

    return config


def print_config_summary(config: Config, logger: logging.Logger):
    """Print configuration summary."""
    logger.info("=" * 60)
    logger.info("Configuration Summary")
    logger.info("=" * 60)
    logger.info(f"Input Path:               {config.data.input_path}")
    logger.info(f"Field:                    {config.data.default_field}")
    logger.info(f"Mechanism:                {config.noise.mechanism}")
    logger.info(f"Alpha:                    {config.noise.alpha}")
    logger.info(f"Accuracy Levels:          {config.noise.min_accuracy}.."
                f"{config.noise.min_accuracy + config.noise.max_accuracy_index}")
    logger.info(f"Fast Sampling:            {config.noise.use_fast_sampling}")
    logger.info("=" * 60)


def main(argv=None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    args = parse_args(argv)

    logger = setup_logging(
        log_level=args.log_level,
        log_dir=args.log_dir
    )

    try:
        logger.info(f"Loading configuration from: {args.config}")
        config = Config.from_ini(args.config)
        config = apply_overrides(config, args)

        logger.info("Validating configuration...")
        config.validate()
        print_config_summary(config, logger)

        if not 0 <= args.accuracy_index <= config.noise.max_accuracy_index:
            raise ValueError(f"accuracy index must be in [0, {config.noise.max_accuracy_index}], "
                             f"got {args.accuracy_index}")

        if args.dry_run:
            logger.info("Dry run mode - exiting without processing")
            return 0

        dataset = load_dataset(
            config.data.input_path,
            has_header=config.data.has_header,
            delimiter=config.data.delimiter,
            encoding=config.data.encoding
        )
        noiser = Noiser.from_config(dataset, config)
        for _ in range(args.accuracy_index):
            noiser.increase_accuracy()

        if noiser.refresh_failed or noiser.snapshot is None:
            logger.error(f"No noised counts available: {noiser.last_refresh.error}")
            return 1

        print(noiser.snapshot.summary())
        logger.info(f"Error bound at alpha={noiser.alpha}: {noiser.snapshot.error_bound}")
        return 0

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
