"""Entry point: python -m swipenews"""

import asyncio
import sys
from pathlib import Path

from swipenews.config import Secrets, load_config
from swipenews.engine import ReaderEngine
from swipenews.logging_config import configure_logging


def main():
    config = load_config(Path("config/settings.yaml"))
    try:
        secrets = Secrets()
    except Exception as e:
        print(f"Failed to load secrets from .env: {e}")
        print("Ensure .env exists with the API keys of the configured search providers")
        sys.exit(1)

    configure_logging(config.logging)

    try:
        engine = ReaderEngine(config, secrets)
    except ValueError as e:
        print(f"Invalid configuration: {e}")
        sys.exit(1)
    asyncio.run(engine.start())


if __name__ == "__main__":
    main()
