from __future__ import annotations

import argparse
import json
from pathlib import Path

import uvicorn

from video_library.config import load_settings
from video_library.repositories.database import Database


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Video Library backend.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API.")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address.")
    serve_parser.add_argument("--port", type=int, default=3000, help="Bind port.")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes.")

    subparsers.add_parser("init-db", help="Create the SQLite schema if it does not exist.")

    openapi_parser = subparsers.add_parser("export-openapi", help="Write the OpenAPI schema.")
    openapi_parser.add_argument(
        "--output",
        type=Path,
        default=Path("openapi") / "openapi.json",
        help="Destination file.",
    )

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)

    if args.command == "serve":
        uvicorn.run(
            "video_library.main:app",
            host=args.host,
            port=args.port,
            reload=args.reload,
        )
        return

    if args.command == "init-db":
        settings = load_settings()
        Database(settings.db_path).initialize()
        print(f"Database ready at {settings.db_path}")
        return

    from video_library.main import app

    output: Path = args.output
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(app.openapi(), indent=2), encoding="utf-8")
    print(f"Wrote OpenAPI schema to {output}")


if __name__ == "__main__":
    main()
