"""
Basic usage example of fastapi-esm-devserver.

Demonstrates:
- Serving a project directory with the built-in stage chain
- Reading settings from DEVSERVER_* environment variables
- Running the app with uvicorn on the fixed port

Run it from a project root containing index.html and src/main.js.
"""

from fastapi_esm_devserver import DevServerSettings, configure_logging, create_app
from fastapi_esm_devserver.config import HOST, PORT

settings = DevServerSettings()
configure_logging(settings.log_level)
app = create_app(settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=HOST, port=PORT)
