"""Run the service with uvicorn: ``python -m blog_api``."""

import uvicorn

from blog_api.config import Settings
from blog_api.telemetry import configure_stdlib_logging


def main() -> None:
    settings = Settings()
    configure_stdlib_logging(settings.log_level)
    uvicorn.run(
        "blog_api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
        log_config=None,
    )


if __name__ == "__main__":
    main()
