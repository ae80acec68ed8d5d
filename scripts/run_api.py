# Use postponed evaluation of annotations so type hints don't require importing types at runtime.
from __future__ import annotations

# Allow running scripts without requiring an editable install (`pip install -e .`).
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
sys.path.insert(0, str(SRC_PATH))

# We import `uvicorn` to run our FastAPI application as an ASGI server during local development.
import uvicorn
import os

# We use a factory function so the FastAPI app can be created with a typed config (no global state).
from bikelocator.api.app import create_app
from bikelocator.config.loader import load_config


def main() -> None:
    config = load_config()
    app = create_app(config)

    host = os.getenv("BIKELOCATOR_HOST", "127.0.0.1")
    port = int(os.getenv("BIKELOCATOR_PORT", "8000"))
    proxy_headers = os.getenv("BIKELOCATOR_PROXY_HEADERS", "false").strip().lower() in {"1", "true", "yes", "on"}

    uvicorn.run(app, host=host, port=port, proxy_headers=proxy_headers)


if __name__ == "__main__":
    main()
