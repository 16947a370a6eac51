#!/usr/bin/env python3
"""
driftive - Infrastructure-as-code drift detection

Runs terraform / tofu / terragrunt plans for every project in a repository and
keeps GitHub issues, remediation pull requests and Slack in sync with the result.

Configuration comes from environment variables (a .env file is loaded first);
command line flags override them.

Usage:
    python main.py --repo-path ./infra
    python main.py --repo-url https://github.com/acme/infra.git --branch main --exit-code
"""

import argparse
import logging
import signal
import sys
import threading
from typing import List, Optional

from dotenv import load_dotenv

from driftive.app import run_driftive
from driftive.config import DriftiveConfig
from driftive.errors import ConfigConflictError, DriftiveError, RunCancelledError
from driftive.logging_config import setup_logging

logger = logging.getLogger(__name__)

EXIT_DRIFT = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Detect state drift in infrastructure-as-code repositories")
    parser.add_argument('--repo-path', help='Path to the repository. If provided, the repository will not be cloned.')
    parser.add_argument('--repo-url', help='e.g. https://github.com/<org>/<repo>. Ignored if --repo-path is provided.')
    parser.add_argument('--branch', help='Repository branch')
    parser.add_argument('--slack-url', help='Slack webhook URL')
    parser.add_argument('--concurrency', type=int, help='Number of projects checked at once (default 4)')
    parser.add_argument('--log-level', help='Log level: DEBUG, INFO, WARNING, ERROR')
    parser.add_argument('--stdout', dest='stdout', action='store_true', default=None,
                        help='Print drift results to stdout (default)')
    parser.add_argument('--no-stdout', dest='stdout', action='store_false',
                        help='Do not print drift results to stdout')
    parser.add_argument('--github-token', help='GitHub token')
    parser.add_argument('--exit-code', action='store_true', default=None,
                        help='Exit with code 1 if any state drift is detected')
    parser.add_argument('--json-output', help='Write the analysis result as JSON to this file')
    parser.add_argument('--api-url', help='Driftive dashboard API URL')
    return parser


def config_from_args(args: argparse.Namespace) -> DriftiveConfig:
    """Environment-backed config with every flag that was given applied on top."""
    config = DriftiveConfig()
    overrides = {
        'repository_path': args.repo_path,
        'repository_url': args.repo_url,
        'branch': args.branch,
        'slack_webhook_url': args.slack_url,
        'concurrency': args.concurrency,
        'log_level': args.log_level,
        'enable_stdout_result': args.stdout,
        'github_token': args.github_token,
        'exit_code': args.exit_code,
        'json_output': args.json_output,
        'driftive_api_url': args.api_url,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, value)
    if config.repository_path:
        config.repository_path = config.repository_path.rstrip('/') or '/'
    return config


def install_signal_handlers(cancel_event: threading.Event) -> None:
    """SIGINT / SIGTERM stop in-flight planning tools instead of killing the process."""
    def _handle(signum, _frame):
        logger.warning(f"🛑 Received signal {signum}, cancelling running analyses...")
        cancel_event.set()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
    except ValueError as e:
        # Malformed numeric environment variable
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(config.log_level)

    try:
        config.validate()
    except ValueError as e:
        logger.error(f"❌ {e}")
        return EXIT_CONFIG_ERROR

    cancel_event = threading.Event()
    install_signal_handlers(cancel_event)

    try:
        result = run_driftive(config, cancel_event)
    except ConfigConflictError as e:
        logger.error(f"❌ Invalid repository config: {e}")
        return EXIT_CONFIG_ERROR
    except ValueError as e:
        logger.error(f"❌ {e}")
        return EXIT_CONFIG_ERROR
    except RunCancelledError as e:
        logger.warning(f"🛑 {e}")
        return EXIT_DRIFT
    except DriftiveError as e:
        logger.error(f"❌ driftive run failed: {e}")
        return EXIT_DRIFT

    if result.has_drift and config.exit_code:
        return EXIT_DRIFT
    return 0


if __name__ == "__main__":
    sys.exit(main())
