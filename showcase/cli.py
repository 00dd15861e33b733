from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

import uvicorn
from loguru import logger

from showcase.aggregator import ProjectAggregator
from showcase.api import create_app
from showcase.config import Config
from showcase.errors import ConfigError, UpstreamFetchError
from showcase.github import GitHubClient


def cmd_serve(config: Config, *, host: str | None = None, port: int | None = None) -> None:
    """Run the JSON API with uvicorn."""
    app = create_app(config)
    uvicorn.run(
        app,
        host=host or config.host,
        port=port or config.port,
        log_config=None,
    )


async def _fetch_projects(config: Config, project_type: str, limit: int | None) -> dict:
    async with GitHubClient(
        config.github_token,
        base_url=config.api_base_url,
        timeout=config.request_timeout,
    ) as github:
        aggregator = ProjectAggregator(github, config)
        if project_type == "all":
            repos = await aggregator.all(limit=limit, with_languages=True)
        else:
            repos = await aggregator.featured()
            if limit is not None:
                repos = repos[: max(limit, 0)]
        return {
            "success": True,
            "data": {
                "repositories": [repo.to_dict() for repo in repos],
                "count": len(repos),
                "type": project_type,
            },
        }


def cmd_projects(config: Config, *, project_type: str = "featured", limit: int | None = None) -> None:
    """Fetch projects once and print the JSON envelope to stdout."""
    try:
        envelope = asyncio.run(_fetch_projects(config, project_type, limit))
    except UpstreamFetchError as exc:
        logger.error("GitHub fetch failed (status {}): {}", exc.status, exc)
        sys.exit(1)
    print(json.dumps(envelope, indent=2, ensure_ascii=False))


class _InterceptHandler(logging.Handler):
    """Route stdlib logging (httpx, uvicorn, etc.) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def _setup_logging(level: str = "INFO") -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> — "
            "<level>{message}</level>"
        ),
    )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers = [_InterceptHandler()]
        uv_logger.propagate = False


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="showcase",
        description="Serve GitHub projects for the portfolio site",
    )
    sub = parser.add_subparsers(dest="command")

    serve_p = sub.add_parser("serve", help="Run the HTTP API")
    serve_p.add_argument("--host", default=None, help="Bind address (default: env HOST)")
    serve_p.add_argument("--port", type=int, default=None, help="Port (default: env PORT or 8000)")

    projects_p = sub.add_parser("projects", help="Print projects as JSON")
    projects_p.add_argument(
        "--type",
        dest="project_type",
        choices=("featured", "all"),
        default="featured",
        help="Featured allow-list or every non-fork, non-archived repo",
    )
    projects_p.add_argument("--limit", type=int, default=None, help="Keep at most N repos")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        config = Config.from_env()
    except ConfigError as exc:
        _setup_logging()
        logger.error("{}", exc)
        sys.exit(1)

    _setup_logging(config.log_level)

    if args.command == "serve":
        cmd_serve(config, host=args.host, port=args.port)
    elif args.command == "projects":
        cmd_projects(config, project_type=args.project_type, limit=args.limit)


if __name__ == "__main__":
    main()
