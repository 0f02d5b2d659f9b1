"""Run the service with uvicorn: ``python -m hls_ladder``."""

import uvicorn

from hls_ladder.core.config import settings


def main() -> None:
    uvicorn.run(
        "hls_ladder.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


if __name__ == "__main__":
    main()
