"""Command-line entry point: serve the current directory on the fixed port."""

from __future__ import annotations

import uvicorn

from fastapi_esm_devserver.app import create_app
from fastapi_esm_devserver.config import HOST, PORT, DevServerSettings
from fastapi_esm_devserver.logging_config import configure_logging


def main() -> None:
    settings = DevServerSettings()
    configure_logging(settings.log_level)
    app = create_app(settings)
    uvicorn.run(app, host=HOST, port=PORT, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
