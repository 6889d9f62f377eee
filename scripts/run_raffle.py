"""Run a raffle from the terminal.

Participants come from a roster CSV and/or the registration database; the
reel is "animated" by printing the name in the centre row as it slows down.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import Callable, Optional

from rafflereel.config import RaffleSettings
from rafflereel.db.engine import get_sessionmaker, make_engine
from rafflereel.draw import DrawStateMachine, ParticipantPool, ReelPlan
from rafflereel.errors import DrawRejectedError, ParticipantImportError
from rafflereel.notifications import Notice
from rafflereel.sources import (
    DatabaseRegistrationFeed,
    FeedPoller,
    RegistrationClient,
    RegistrationFeed,
    RemoteRegistrationFeed,
)
from rafflereel.workflows import import_roster

logger = logging.getLogger("run_raffle")

FRAMES_PER_SECOND = 12


class ConsoleRenderer:
    """Prints the centre row of the reel until it comes to rest."""

    def __init__(self, speed: float = 1.0) -> None:
        self._speed = speed

    def render(self, plan: ReelPlan, on_complete: Callable[[], None]) -> None:
        frames = max(1, int(plan.duration * FRAMES_PER_SECOND))
        last_row: Optional[int] = None
        for frame in range(frames + 1):
            elapsed = plan.duration * frame / frames
            row = plan.row_at(elapsed)
            if row != last_row:
                print(f"\r  >>> {plan.sequence[row].display_name:<30}", end="", flush=True)
                last_row = row
            time.sleep(plan.duration / frames / self._speed)
        print()
        on_complete()


def print_notice(notice: Notice) -> None:
    marker = "!" if notice.destructive else "*"
    print(f"[{marker}] {notice.title}: {notice.description}")


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--roster", help="roster CSV to import before the first draw")
    parser.add_argument(
        "--db", action="store_true", help="follow the registration database for newcomers"
    )
    parser.add_argument(
        "--remote",
        action="store_true",
        help="follow the remote registration service (REGISTRATION_API_URL)",
    )
    parser.add_argument("--speed", type=float, default=1.0, help="animation speed factor")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    settings = RaffleSettings.from_env()
    pool = ParticipantPool()
    machine = DrawStateMachine(
        pool,
        settings=settings,
        notify=print_notice,
        renderer=ConsoleRenderer(speed=args.speed),
    )

    if args.roster:
        try:
            import_roster(machine, args.roster)
        except ParticipantImportError:
            logger.error(f"Roster {args.roster} could not be imported, exiting")
            return 1

    feeds: list[RegistrationFeed] = []
    if args.db:
        session_factory = get_sessionmaker(make_engine())
        feeds.append(DatabaseRegistrationFeed(pool, session_factory, notify=print_notice))
    if args.remote:
        client = RegistrationClient(base_url=settings.registration_api_url)
        feeds.append(RemoteRegistrationFeed(pool, client, notify=print_notice))
    pollers = [FeedPoller(feed, interval=settings.poll_interval) for feed in feeds]
    for poller in pollers:
        poller.start()

    print("Commands: [enter]/draw, reset, status, quit")
    try:
        while True:
            command = input("> ").strip().lower()
            if command in ("q", "quit", "exit"):
                break
            if command == "status":
                print(f"Participants: {len(pool)} | Available for this round: {len(pool.available)}")
            elif command == "reset":
                machine.reset_available()
            elif command in ("", "draw"):
                try:
                    spin = machine.start_draw()
                except DrawRejectedError:
                    continue
                print(f"Winner: {spin.finished.result().display_name}")
                machine.next_round()
            else:
                print(f"Unknown command: {command}")
    except (EOFError, KeyboardInterrupt):
        print()
    finally:
        machine.abort()
        for poller in pollers:
            poller.stop(timeout=settings.poll_interval)
    return 0


if __name__ == "__main__":
    sys.exit(main())
