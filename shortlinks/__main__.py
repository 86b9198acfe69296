"""Run the shortlink service with uvicorn."""

import uvicorn

from shortlinks.core.config import settings


def main() -> None:
    uvicorn.run(
        "shortlinks.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


if __name__ == "__main__":
    main()
