"""Settlement batch job.

Usage:
    python -m src.wg_settlement.job              # most recently completed quarter
    python -m src.wg_settlement.job 2026-Q1      # a specific quarter
    python -m src.wg_settlement.job --due        # every ended, unresolved quarter

Exit status is 0 when every market settled, 1 when any market or quarter
failed (its positions stay PENDING and are retried on the next run), and 2
when the quarter id is rejected before anything is written.
"""

import argparse
import asyncio
import json
import logging
import sys

from src.wg_common.errors import AppError
from src.wg_common.logging_config import configure_logging
from src.wg_settlement.application.schemas import SettlementSummary
from src.wg_settlement.application.service import SettlementService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.wg_settlement.job",
        description="Settle quarterly MRR growth wagers",
    )
    parser.add_argument(
        "quarter",
        nargs="?",
        default=None,
        help="Quarter id such as 2026-Q1 (default: the most recently completed quarter)",
    )
    parser.add_argument(
        "--due",
        action="store_true",
        help="Settle every quarter that has ended and is not yet resolved",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    return parser


async def run(quarter: str | None, due: bool) -> list[SettlementSummary]:
    from src.wg_common.database import engine

    service = SettlementService()
    try:
        if due:
            return await service.settle_due()
        return [await service.settle(quarter)]
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.due and args.quarter:
        print("error: pass either a quarter or --due, not both", file=sys.stderr)
        return 2

    configure_logging(args.log_level)
    try:
        summaries = asyncio.run(run(args.quarter, args.due))
    except AppError as e:
        logger.error("Settlement rejected: [%d] %s", e.code, e.message)
        return 2
    except Exception:
        logger.exception("Settlement run aborted; unsettled markets stay PENDING")
        return 1

    print(json.dumps([s.model_dump() for s in summaries], indent=2))
    return 1 if any(s.errors for s in summaries) else 0


if __name__ == "__main__":
    sys.exit(main())
