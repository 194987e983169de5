"""
Main entry point for covidmath.

Runs a clustering or outlier analysis over a snapshot file and prints the
resulting JSON document.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

import numpy as np

from covidmath.analysis.clustering import ClusteringService
from covidmath.analysis.outliers import VALID_METRICS, run_outlier_detection
from covidmath.cache.result_cache import ResultCache
from covidmath.cache.store import FileStore
from covidmath.components.config import ConfigManager, load_config_file
from covidmath.data.loader import load_rows
from covidmath.errors import EmptyDatasetError, InvalidParameterError

logger = logging.getLogger(__name__)


def resolve_log_level(cli_level: Optional[str], config) -> str:
    """
    Pick the logging level name.

    The --log-level flag wins; otherwise logging.level from configuration
    (which LOG_LEVEL sets) is used. Unknown names fall back to WARNING.

    Args:
        cli_level: Level given on the command line, or None
        config: Configuration

    Returns:
        Upper-case level name
    """
    level = (cli_level or config.get('logging.level') or 'WARNING').upper()
    if level == 'WARN':
        level = 'WARNING'
    if not isinstance(logging.getLevelName(level), int):
        logger.warning(f"Unknown logging level {level!r}, using WARNING")
        level = 'WARNING'
    return level


def setup_logging(level: str = 'INFO') -> None:
    """
    Set up logging.

    Args:
        level: Logging level
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler()
        ]
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Args:
        argv: Argument list (sys.argv[1:] if None)

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description='Country-level clustering and outlier analysis')

    parser.add_argument('--config', help='Path to configuration file')
    parser.add_argument(
        '--log-level',
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level (defaults to logging.level from configuration)'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    cluster = subparsers.add_parser('cluster', help='Cluster countries and project them to 2-D')
    cluster.add_argument('--input', required=True, help='Snapshot file (.csv or .json)')
    cluster.add_argument('--k', type=int, help='Number of clusters (clamped to the configured range)')
    cluster.add_argument('--force', action='store_true', help='Ignore any cached result')
    cluster.add_argument('--cache-dir', help='Directory for cached results')
    cluster.add_argument('--seed', type=int, help='Seed for the random generator')
    cluster.add_argument('--output', help='Write the result here instead of stdout')

    outliers = subparsers.add_parser('outliers', help='Flag anomalous countries for one metric')
    outliers.add_argument('--input', required=True, help='Snapshot file (.csv or .json)')
    outliers.add_argument('--metric', choices=VALID_METRICS, help='Metric to analyse')
    outliers.add_argument('--continent', help='Only analyse this continent')
    outliers.add_argument('--output', help='Write the result here instead of stdout')

    return parser.parse_args(argv)


def write_output(document: dict, filepath: Optional[str]) -> None:
    """Write a result document as JSON to a file or stdout."""
    text = json.dumps(document, indent=2)
    if filepath:
        with open(filepath, 'w') as f:
            f.write(text)
    else:
        sys.stdout.write(text + '\n')


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Process exit status
    """
    args = parse_args(argv)

    overrides = {}
    if args.config:
        overrides.update(load_config_file(args.config))
    if getattr(args, 'cache_dir', None):
        overrides.setdefault('cache', {})['dir'] = args.cache_dir

    config = ConfigManager.get_config(overrides)
    setup_logging(resolve_log_level(args.log_level, config))

    try:
        if args.command == 'cluster':
            seed = args.seed
            service = ClusteringService(
                ResultCache(FileStore(config.get('cache.dir'))),
                config,
                rng_factory=lambda: np.random.default_rng(seed)
            )
            outcome = service.cluster(lambda: load_rows(args.input), args.k, args.force)
            document = outcome.value
        else:
            document = run_outlier_detection(load_rows(args.input), args.metric, args.continent, config)
    except (InvalidParameterError, EmptyDatasetError) as e:
        logger.error(str(e))
        sys.stderr.write(f"error: {e}\n")
        return 2

    write_output(document, args.output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
