"""
Remind Inspector CLI

Debug tool for inspecting remind tasks and applying the schema.

Usage:
    # Apply migrations/001_remind_tasks.sql
    python scripts/remind_inspector.py migrate

    # List reminder channels
    python scripts/remind_inspector.py channels

    # List tasks of a channel
    python scripts/remind_inspector.py list --channel-id 123456789

    # Show what the scheduler would do right now
    python scripts/remind_inspector.py due --channel-id 123456789
"""

import argparse
import asyncio
import logging
import os
import sys
from datetime import datetime
from pathlib import Path

import asyncpg
import pytz

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reminders.repository import row_to_task
from reminders.scheduler import should_send_overdue, should_send_pre_reminder
from reminders.time_utils import format_tokyo_datetime

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent.parent / "migrations"


def format_datetime(dt: datetime) -> str:
    """Format datetime for display."""
    if dt is None:
        return "Never"
    return format_tokyo_datetime(dt)


async def apply_migrations(conn: asyncpg.Connection):
    """Run every SQL file in migrations/ in name order."""
    for path in sorted(MIGRATIONS_DIR.glob("*.sql")):
        logger.info(f"Applying {path.name}...")
        await conn.execute(path.read_text(encoding="utf-8"))
    logger.info("Done")


async def list_channels(conn: asyncpg.Connection):
    rows = await conn.fetch(
        """
        SELECT c.channel_id, c.remind_notice_thread_id, c.last_sync_time,
               COUNT(t.id) AS task_count
        FROM remind_channels c
        LEFT JOIN remind_tasks t ON t.channel_id = c.channel_id
        GROUP BY c.channel_id
        ORDER BY c.channel_id
        """
    )
    if not rows:
        logger.info("No reminder channels found.")
        return

    for row in rows:
        logger.info(
            f"[{row['channel_id']}] tasks={row['task_count']} "
            f"thread={row['remind_notice_thread_id'] or '-'} "
            f"synced={format_datetime(row['last_sync_time'])}"
        )


async def _fetch_tasks(conn: asyncpg.Connection, channel_id: str):
    rows = await conn.fetch(
        "SELECT * FROM remind_tasks WHERE channel_id = $1 ORDER BY created_at, id",
        channel_id,
    )
    return [row_to_task(row) for row in rows]


async def list_tasks(conn: asyncpg.Connection, channel_id: str, verbose: bool = False):
    """List tasks of a channel."""
    tasks = await _fetch_tasks(conn, channel_id)
    if not tasks:
        logger.info("No tasks found for this channel.")
        return

    logger.info(f"\n{'='*80}")
    logger.info(f"Found {len(tasks)} tasks")
    logger.info(f"{'='*80}\n")

    for task in tasks:
        paused = " (paused)" if task.is_paused else ""
        logger.info(f"[{task.id}] {task.title}{paused}")
        logger.info(f"    Next due: {format_datetime(task.next_due_at)} every {task.interval_days}d")
        if verbose:
            logger.info(f"    Message: {task.message_id or '-'}")
            logger.info(f"    Last done: {format_datetime(task.last_done_at)}")
            logger.info(f"    Remind before: {task.remind_before_minutes}min")
            logger.info(
                f"    Overdue notices: {task.overdue_notify_count}/"
                f"{task.overdue_notify_limit if task.overdue_notify_limit is not None else 'default'}"
            )
            for item in task.inventory_items:
                logger.info(f"    Inventory: {item.name} stock={item.stock} consume={item.consume}")
        logger.info("")


async def show_due(conn: asyncpg.Connection, channel_id: str, overdue_limit: int):
    """Show the action the scheduler would take for each task now."""
    now = datetime.now(pytz.UTC)
    for task in await _fetch_tasks(conn, channel_id):
        if should_send_pre_reminder(task, now):
            action = "pre-reminder"
        elif should_send_overdue(task, now, overdue_limit):
            action = "overdue notice"
        else:
            action = "-"
        logger.info(f"[{task.id}] {task.title}: {action}")


async def main_async(args):
    """Async main function."""
    db_url = os.environ.get("DATABASE_URL")
    if not db_url:
        logger.error("DATABASE_URL environment variable required")
        sys.exit(1)

    conn = await asyncpg.connect(db_url)

    try:
        if args.command == "migrate":
            await apply_migrations(conn)
        elif args.command == "channels":
            await list_channels(conn)
        elif args.command == "list":
            await list_tasks(conn, args.channel_id, verbose=args.verbose)
        elif args.command == "due":
            await show_due(conn, args.channel_id, args.overdue_limit)
    finally:
        await conn.close()


def main():
    parser = argparse.ArgumentParser(
        description="Remind Inspector CLI - Debug and query remind tasks"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("migrate", help="Apply SQL migrations")
    subparsers.add_parser("channels", help="List reminder channels")

    list_parser = subparsers.add_parser("list", help="List tasks of a channel")
    list_parser.add_argument("--channel-id", required=True, help="Discord channel ID")
    list_parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show full details"
    )

    due_parser = subparsers.add_parser("due", help="Show pending scheduler actions")
    due_parser.add_argument("--channel-id", required=True, help="Discord channel ID")
    due_parser.add_argument(
        "--overdue-limit", type=int, default=1, help="Default overdue notice limit (default: 1)"
    )

    args = parser.parse_args()
    asyncio.run(main_async(args))


if __name__ == "__main__":
    main()
