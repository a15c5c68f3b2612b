"""Run thing-api with uvicorn.

Usage:
    API_TOKEN=... PORT=8080 LOG_FORMAT=console python -m thing_api
"""

import sys

import uvicorn

from .main import create_app
from .observability.logging import configure_logging, get_logger
from .settings import ThingAPISettings


def main():
    logger = get_logger(__name__)

    try:
        settings = ThingAPISettings.from_env()
    except ValueError as exc:
        configure_logging()
        logger.error("invalid_configuration", error=str(exc))
        sys.exit(2)

    errors = settings.validate()
    if errors:
        configure_logging()
        logger.error("invalid_configuration", errors=errors)
        sys.exit(2)

    configure_logging(settings.log_level, settings.log_format)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
