"""Run the API server with uvicorn."""

import uvicorn

from idregistry.config import settings


def main() -> None:
    uvicorn.run("idregistry.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
