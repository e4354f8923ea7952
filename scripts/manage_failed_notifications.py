"""Utility script to inspect and clear failed notification jobs."""

from __future__ import annotations

import argparse
import asyncio

from app.config import get_settings
from app.domain.entities import JobState, NotificationJob
from app.infrastructure.queue import NotificationQueueClient, QueueError


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for failed job management."""

    parser = argparse.ArgumentParser(
        description="List failed notification jobs or clear them from the queue.",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--clear",
        metavar="JOB_ID",
        default=None,
        help="Remove the failed result of the given job.",
    )
    group.add_argument(
        "--clear-all",
        action="store_true",
        help="Remove every failed job result.",
    )
    return parser.parse_args()


def _describe(job: NotificationJob) -> str:
    finished = job.finished_at.isoformat() if job.finished_at else "-"
    return (
        f"{job.id}  {finished}  attempts={job.attempt_count}  "
        f"recipients={len(job.payload.recipient_user_ids)}  "
        f"title={job.payload.title!r}\n    reason: {job.failure_reason}"
    )


async def run(args: argparse.Namespace) -> None:
    queue = NotificationQueueClient.from_settings(get_settings())
    try:
        failed = [job for job in await queue.list_finished() if job.state is JobState.FAILED]

        if args.clear:
            if not any(job.id == args.clear for job in failed):
                raise SystemExit(f"No failed job with id {args.clear}")
            await queue.delete_result(args.clear)
            print(f"Cleared failed job {args.clear}")
            return

        if args.clear_all:
            cleared = 0
            for job in failed:
                if await queue.delete_result(job.id):
                    cleared += 1
            print(f"Cleared {cleared} failed job(s)")
            return

        if not failed:
            print("No failed notification jobs")
            return
        for job in failed:
            print(_describe(job))
    finally:
        await queue.close()


def main() -> None:
    """Run the command selected on the command line."""

    args = parse_args()
    try:
        asyncio.run(run(args))
    except QueueError as exc:
        raise SystemExit(f"Notification queue unavailable: {exc}") from exc


if __name__ == "__main__":
    main()
