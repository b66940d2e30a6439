"""Application entrypoint — start the API server or run one-off commands."""

from __future__ import annotations

import argparse
import asyncio
import sys

import uvicorn

from dawdle.config import get_settings
from dawdle.logger import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dawdle",
        description="Infer emotional zones from pointer-motion efficiency.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── serve ─────────────────────────────────────────────────
    serve_parser = sub.add_parser("serve", help="Start the API server.")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)
    serve_parser.add_argument("--reload", action="store_true")

    # ── replay ────────────────────────────────────────────────
    replay_parser = sub.add_parser("replay", help="Analyse a recorded x,y,timestamp CSV trace.")
    replay_parser.add_argument("trace", help="Path to the CSV trace.")
    replay_parser.add_argument(
        "--actions", action="store_true", help="Also print the per-action metrics table.",
    )

    # ── init-db ───────────────────────────────────────────────
    sub.add_parser("init-db", help="Create the history tables.")

    return parser


def _replay(trace: str, show_actions: bool) -> int:
    from dawdle.motion.segmenter import split_into_actions
    from dawdle.research.analysis import (
        actions_to_dataframe,
        compute_summary,
        load_trace,
        replay_verdicts,
    )

    settings = get_settings()
    samples = load_trace(trace)
    actions = split_into_actions(samples, settings.action_delay_ms)
    metrics = actions_to_dataframe(actions)

    if show_actions:
        print(metrics.to_string())
        print()
    for key, value in compute_summary(metrics).items():
        print(f"{key}: {value}")

    verdicts = replay_verdicts(samples, settings)
    if verdicts.empty:
        print("Not enough actions for a verdict.")
        return 0
    print()
    print(verdicts.to_string())
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level)

    if args.command == "serve":
        uvicorn.run(
            "dawdle.api.server:app",
            host=args.host or settings.api_host,
            port=args.port or settings.api_port,
            reload=args.reload,
        )
    elif args.command == "replay":
        sys.exit(_replay(args.trace, args.actions))
    elif args.command == "init-db":
        from dawdle.storage.database import init_db

        asyncio.run(init_db())
        print("Database tables created.")
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
