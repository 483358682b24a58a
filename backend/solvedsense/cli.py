"""
SolvedSense command line

Runs one analysis for a solved.ac handle and prints the result as JSON.

Usage:
    solvedsense report koosaga
    solvedsense weakness koosaga
    solvedsense recommend koosaga --urgency high --mood frustrated --time 25 --streak 4
    solvedsense predict koosaga

Exit codes:
    0 success, 1 upstream failure, 2 bad arguments
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Dict, List, Optional

from dotenv import load_dotenv

from solvedsense.schemas.analytics import AnalysisContext
from solvedsense.services.analytics_engine import AnalyticsEngine
from solvedsense.services.solvedac_client import (
    SolvedAcClient,
    UpstreamError,
    UpstreamRateLimitedError,
)

logger = logging.getLogger("solvedsense.cli")

COMMANDS = {
    "report": "Every analysis in one document",
    "weakness": "Weak tags, improvement recommendations and study priorities",
    "progress": "Tier progress, strengths and activity",
    "difficulty": "Mastery of the current tier and struggling levels",
    "recommend": "Adaptive recommendations for today, this week and this month",
    "predict": "Time-to-next-tier estimate",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="solvedsense",
        description="Learning analytics for solved.ac users",
    )
    parser.add_argument("command", choices=list(COMMANDS), help="Analysis to run")
    parser.add_argument("handle", help="solved.ac handle")
    parser.add_argument("--urgency", choices=["high", "medium", "low"])
    parser.add_argument("--focus", choices=["weakness", "tier_up", "general"])
    parser.add_argument("--mood", choices=["motivated", "frustrated", "neutral"])
    parser.add_argument("--time", type=int, dest="time_available_minutes", help="Minutes available today")
    parser.add_argument("--streak", type=int, help="Current daily streak, for the personalized message")
    parser.add_argument("--indent", type=int, default=2, help="JSON indent (0 for compact)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log upstream calls")
    return parser


def context_from_args(args: argparse.Namespace) -> AnalysisContext:
    return AnalysisContext(
        urgency=args.urgency,
        focus=args.focus,
        mood=args.mood,
        time_available_minutes=args.time_available_minutes,
        streak=args.streak,
    )


async def run_command(engine: AnalyticsEngine, args: argparse.Namespace) -> Dict:
    context = context_from_args(args)
    handle = args.handle

    if args.command == "report":
        return await engine.report(handle, context)
    if args.command == "weakness":
        return await engine.weakness(handle)
    if args.command == "progress":
        return await engine.progress(handle)
    if args.command == "difficulty":
        return await engine.difficulty(handle)
    if args.command == "recommend":
        return await engine.recommendations(handle, context)
    return await engine.tier_prediction(handle)


async def _run(args: argparse.Namespace) -> Dict:
    async with SolvedAcClient() as client:
        return await run_command(AnalyticsEngine(client), args)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        result = asyncio.run(_run(args))
    except UpstreamRateLimitedError as e:
        print(f"Error: {e} (retry after {e.retry_after}s)", file=sys.stderr)
        return 1
    except UpstreamError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=args.indent or None, ensure_ascii=False, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
