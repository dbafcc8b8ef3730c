"""Run the Claims Intake API with uvicorn.

Usage:
    python -m claims_intake [--host 0.0.0.0] [--port 8080] [--reload]
"""

import argparse
import logging

import uvicorn

from .config import load_settings


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the Claims Intake API")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    parser.add_argument("--port", type=int, default=8080, help="Bind port (default: 8080)")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    args = parser.parse_args()

    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    uvicorn.run(
        "claims_intake.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
