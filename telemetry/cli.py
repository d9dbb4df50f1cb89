"""
CLI application for recording usage counters and sending them in one batch.
Intended to be called from a periodic job: it builds a client, records the
given metrics and flushes them once.
"""
import argparse
import json
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from . import config as telemetry_config
from .client import TelemetryClient
from .exceptions import CompressionError
from .transmitter import Transmitter

# Setup logging
logger = logging.getLogger(__name__)


def setup_logging(log_level: str) -> None:
    """
    Setup logging with the specified log level.

    Args:
        log_level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def parse_number(text: str) -> float:
    """Parse a metric value, keeping integers as int."""
    try:
        return int(text)
    except ValueError:
        return float(text)


def parse_pair(spec: str) -> Tuple[str, str]:
    """
    Parse a "name=value" specification.

    Raises:
        ValueError: If the specification has no "=" or an empty name
    """
    if '=' not in spec:
        raise ValueError(f"Expected name=value, got {spec!r}")
    name, value = spec.split('=', 1)
    name = name.strip()
    if not name:
        raise ValueError(f"Empty name in {spec!r}")
    return name, value.strip()


def parse_label(spec: str) -> Tuple[str, str]:
    try:
        return parse_pair(spec)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def parse_metric(spec: str) -> Tuple[str, float]:
    try:
        name, value = parse_pair(spec)
        return name, parse_number(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def load_config_from_file(config_file: str) -> Dict[str, Any]:
    """
    Load configuration from a JSON file.

    The file may contain "labels" (object), "metrics" (object of name to a
    number or a list of numbers) and any option name as a key.

    Args:
        config_file (str): Path to the JSON config file

    Returns:
        dict: Configuration dictionary, empty if the file is missing or invalid
    """
    if not os.path.exists(config_file):
        logger.error("Config file not found: %s", config_file)
        return {}

    try:
        with open(config_file, 'r') as f:
            config = json.load(f)
            logger.debug("Loaded configuration from %s: %s", config_file, config)
    except (json.JSONDecodeError, ValueError, IOError) as e:
        logger.error("Error parsing config file %s: %s", config_file, e)
        return {}

    if not isinstance(config, dict):
        logger.error("Config file %s must contain a JSON object", config_file)
        return {}
    return config


def collect_metrics(config: Dict[str, Any], cli_metrics: List[Tuple[str, float]]) -> List[Tuple[str, float]]:
    """
    Merge metrics from the config file with command line metrics.
    File metrics come first, command line metrics are appended.
    """
    file_metrics = config.get('metrics') or {}
    if not isinstance(file_metrics, dict):
        raise TypeError(f"\"metrics\" must be a JSON object, got {type(file_metrics).__name__}")

    metrics = []
    for name, values in file_metrics.items():
        if not isinstance(values, list):
            values = [values]
        metrics.extend((name, value) for value in values)
    metrics.extend(cli_metrics)
    return metrics


def merge_labels(config: Dict[str, Any], cli_labels: List[Tuple[str, str]]) -> Dict[str, str]:
    """
    Merge labels from the config file with command line labels.
    Command line labels take precedence over config file labels.

    Raises:
        TypeError: If "labels" in the config file is not a JSON object
    """
    file_labels = config.get('labels') or {}
    if not isinstance(file_labels, dict):
        raise TypeError(f"\"labels\" must be a JSON object, got {type(file_labels).__name__}")

    labels = dict(file_labels)
    labels.update(dict(cli_labels))
    return labels


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Record usage counters and send them to the telemetry collector.',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('--config-file', type=str,
                        help='Path to JSON configuration file')
    parser.add_argument('--log-level', type=str, default=telemetry_config.LOG_LEVEL.upper(),
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Log level')
    parser.add_argument('--label', dest='labels', type=parse_label, action='append', default=[],
                        metavar='NAME=VALUE', help='Label attached to every metric (repeatable)')
    parser.add_argument('--metric', dest='metrics', type=parse_metric, action='append', default=[],
                        metavar='NAME=VALUE', help='Counter sample to record (repeatable)')
    parser.add_argument('--timestamps', action='store_true',
                        help='Append sample timestamps to every line')
    parser.add_argument('--dry-run', action='store_true',
                        help='Do not send metrics to the collector, just log them')
    parser.add_argument('--show-labels', action='store_true',
                        help='Print the effective labels as JSON before sending')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments, record metrics and send them.

    Returns:
        int: 0 if the batch was accepted, 1 if delivery failed, 2 on invalid input
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    config = {}
    if args.config_file:
        logger.info("Loading configuration from %s", args.config_file)
        config = load_config_from_file(args.config_file)

    dry_run = args.dry_run or bool(config.get('dry_run', False))
    with_timestamps = args.timestamps or bool(config.get('timestamps', False))

    try:
        labels = merge_labels(config, args.labels)
        client = TelemetryClient(
            labels=labels,
            transmitter=Transmitter(dry_run=dry_run),
            with_timestamps=with_timestamps
        )
        for name, value in collect_metrics(config, args.metrics):
            client.add(name, value)
    except (ValueError, TypeError) as e:
        logger.error("Invalid input: %s", e)
        return 2

    if args.show_labels:
        print(json.dumps(client.get_labels(), indent=2, sort_keys=True))

    try:
        sent = client.send()
    except CompressionError as e:
        logger.error("%s", e)
        return 1

    if not sent:
        logger.warning("Telemetry collector did not accept the batch")
        return 1

    logger.info("Telemetry sent.")
    return 0
