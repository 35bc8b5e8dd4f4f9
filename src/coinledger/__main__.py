"""Server entrypoint: runs the API under uvicorn with host/port from settings."""

import uvicorn

from coinledger.config.logging_config import setup_logging
from coinledger.config.settings import get_settings
from coinledger.main import app


def main() -> None:
    settings = get_settings()
    setup_logging()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
