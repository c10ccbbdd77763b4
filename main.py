"""
TOPAZ 2.0 scoring service entry point
"""
import asyncio
import sys
from pathlib import Path
from typing import Optional
from loguru import logger

from topaz.config import app_config
from database.supabase_client import ScoringDB
from app.services.medals import award_medal_points_for_competition
from app.services.results import load_results, export_payload
from exports.excel import build_results_workbook, build_complete_workbook
from exports.json_export import export_json


# Logging
logger.remove()
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level=app_config.log_level
)
logger.add(
    f"{app_config.log_dir}/topaz_{{time:YYYY-MM-DD}}.log",
    rotation="1 day",
    retention="30 days",
    level="DEBUG"
)


class TopazCLI:
    """Operator commands against the scoring database"""

    def __init__(self):
        self.db: Optional[ScoringDB] = None

    def initialize(self):
        if self.db is None:
            self.db = ScoringDB()
            logger.info("Database client ready")

    async def stats(self, competition_id: Optional[str] = None) -> dict:
        self.initialize()
        if competition_id:
            return await self.db.get_competition_stats(competition_id)
        return await self.db.get_stats()

    async def award_medals(self, competition_id: str) -> dict:
        self.initialize()
        return await award_medal_points_for_competition(self.db, competition_id)

    async def leaderboard(self, limit: int) -> list:
        self.initialize()
        return await self.db.get_season_leaderboard(limit)

    async def export(self, competition_id: str, fmt: str, output_dir: Path) -> Path:
        self.initialize()

        if fmt == "xlsx":
            calculator = await load_results(self.db, competition_id)
            content, filename = build_results_workbook(
                calculator.competition,
                calculator.entries_with_group_rank(),
                calculator.scores,
                calculator.categories,
                calculator.age_divisions,
            )
        else:
            args = await export_payload(self.db, competition_id)
            if fmt == "full":
                content, filename = build_complete_workbook(*args)
            else:
                content, filename = export_json(*args)

        output_dir.mkdir(parents=True, exist_ok=True)
        path = output_dir / filename
        path.write_bytes(content)
        logger.info(f"Export written: {path}")
        return path


def serve(host: str, port: int):
    import uvicorn

    uvicorn.run("app.server:app", host=host, port=port)


def build_parser():
    import argparse

    parser = argparse.ArgumentParser(description="TOPAZ 2.0 dance competition scoring")
    sub = parser.add_subparsers(dest="mode")

    serve_parser = sub.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default=app_config.host)
    serve_parser.add_argument("--port", type=int, default=app_config.port)

    stats_parser = sub.add_parser("stats", help="Row counts")
    stats_parser.add_argument("competition_id", nargs="?")

    award_parser = sub.add_parser("award-medals", help="Award season points for a competition")
    award_parser.add_argument("competition_id")

    board_parser = sub.add_parser("leaderboard", help="Season medal leaderboard")
    board_parser.add_argument("--limit", type=int, default=app_config.leaderboard_size)

    export_parser = sub.add_parser("export", help="Export a competition")
    export_parser.add_argument("competition_id")
    export_parser.add_argument("--format", dest="fmt", choices=["xlsx", "json", "full"], default="xlsx")
    export_parser.add_argument("--output", default="exports_out")

    return parser


async def run(args):
    cli = TopazCLI()

    if args.mode == "stats":
        stats = await cli.stats(args.competition_id)
        print("\n=== Database stats ===")
        for name, count in stats.items():
            print(f"  {name}: {count}")

    elif args.mode == "award-medals":
        result = await cli.award_medals(args.competition_id)
        print(f"\nFirst places: {result['first_place_count']}, points awarded: {result['total_awarded']}")
        for item in result["summary"]:
            names = ", ".join(f"{a['name']} ({a['points']}, {a['level']})" for a in item["awards"]) or "already awarded"
            print(f"  {item['entry']}: {names}")

    elif args.mode == "leaderboard":
        rows = await cli.leaderboard(args.limit)
        print("\n=== Season leaderboard ===")
        for row in rows:
            print(
                f"  {row['rank']:>3}. {row['participant_name']:<30} {row['total_points']:>3} pts "
                f"{row['current_medal_level']:<7} next: {row['next_level']} (+{row['points_to_next']})"
            )

    elif args.mode == "export":
        path = await cli.export(args.competition_id, args.fmt, Path(args.output))
        print(f"Saved {path}")


def main():
    """Main"""
    args = build_parser().parse_args()

    if args.mode in (None, "serve"):
        serve(getattr(args, "host", app_config.host), getattr(args, "port", app_config.port))
    else:
        asyncio.run(run(args))


if __name__ == "__main__":
    main()
