"""Run the local API: `python -m calmtrack`."""
import uvicorn

from calmtrack.core.config import settings


def main() -> None:
    uvicorn.run(
        "calmtrack.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
