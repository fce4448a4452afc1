#!/usr/bin/env python3
"""
CLI tool for rebuilding the proposal search index.

Runs ReindexProposalJob for every proposal, either inline (default) or
by queueing one Celery job per proposal.

Usage:
    python scripts/reindex_proposals.py
    python scripts/reindex_proposals.py --queue
    python scripts/reindex_proposals.py --ids 4 8 15
"""

import argparse
import logging
import sys

from talk_proposals.application.jobs import ReindexProposalJob
from talk_proposals.application.models import JobName
from talk_proposals.bootstrap import build_container
from talk_proposals.domain.shared.exceptions import TransientInfraError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Rebuild the proposal search index")
    parser.add_argument(
        "--ids", type=int, nargs="+", help="Only these proposal ids (default: all)"
    )
    parser.add_argument(
        "--queue",
        action="store_true",
        help="Queue Celery jobs instead of indexing inline",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    container = build_container()

    if args.ids:
        proposal_ids = args.ids
    else:
        with container.uow_factory() as uow:
            proposal_ids = uow.proposals.all_ids()

    logger.info(f"Reindexing {len(proposal_ids)} proposal(s)")

    if args.queue:
        for proposal_id in proposal_ids:
            container.job_queue.enqueue(JobName.REINDEX_PROPOSAL, {"proposal_id": proposal_id})
        logger.info(f"Queued {len(proposal_ids)} reindex job(s)")
        return 0

    job = ReindexProposalJob(container.uow_factory, container.search_index)
    indexed = failed = 0
    for proposal_id in proposal_ids:
        try:
            if job.run(proposal_id):
                indexed += 1
        except TransientInfraError as e:
            failed += 1
            logger.error(f"Failed to index proposal {proposal_id}: {e}")

    logger.info(f"Indexed {indexed}, failed {failed}, skipped {len(proposal_ids) - indexed - failed}")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
