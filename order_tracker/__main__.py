"""
Server bootstrap: ``python -m order_tracker`` or ``order-tracker``.
"""

import uvicorn

from order_tracker.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "order_tracker.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
