"""Run the booking server with uvicorn: ``python -m courtbot``."""

import uvicorn

from courtbot.core.config import get_settings
from courtbot.core.logging import configure_logging


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "courtbot.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.server.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
