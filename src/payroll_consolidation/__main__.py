"""Entry point for running the application with uvicorn."""

import logging

import uvicorn

from payroll_consolidation.config import get_settings


def main() -> None:
    """Run the application."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "payroll_consolidation.api.app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
