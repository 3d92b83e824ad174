"""Module entrypoint for running the purchase API with settings from the env file."""

import logging
import os

import uvicorn

from ticket_pipeline.core.config import load_settings
from ticket_pipeline.core.errors import ConfigurationError
from ticket_pipeline.core.logging import configure_logging
from ticket_pipeline.services.api.main import create_app


def main() -> int:
    """Load the required env file, then serve on the configured host and port."""

    env_file = os.environ.get("TICKET_PIPELINE_ENV_FILE", ".env")
    try:
        settings = load_settings(env_file)
    except ConfigurationError as exc:
        configure_logging(service="api")
        logging.getLogger(__name__).error("api_config_missing", extra={"error": str(exc)})
        return 1

    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
