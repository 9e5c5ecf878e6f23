"""Webhook Server Entry Point

Serves the Webflow webhook receiver with uvicorn.

Usage:
    python -m run_webhook --host 0.0.0.0 --port 8000
"""

import argparse
import logging

import uvicorn
from dotenv import load_dotenv

from webflow_sync.config import Settings
from webflow_sync.errors import ConfigError
from webflow_sync.logging_setup import configure_logging
from webflow_sync.webhook import build_app


def main(argv=None) -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(description="Webflow -> Algolia webhook receiver")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        configure_logging(log_file="webhook.log")
        logging.getLogger(__name__).error("Configuration error: %s", e)
        return 2

    configure_logging(settings.log_level, log_file="webhook.log")
    uvicorn.run(build_app(settings), host=args.host, port=args.port, log_config=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
