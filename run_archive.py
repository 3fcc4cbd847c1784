"""Run a Stillsite archive job from the command line."""

import argparse
import sys

from core.jobs.archive_manager import ArchiveManager
from database.connection import init_db


def print_status(manager: ArchiveManager):
    print(f"[*] State: {manager.get_state_name()}")
    for state, message in manager.get_status_messages().items():
        print(f"    {state:<13} {message}")


def main():
    parser = argparse.ArgumentParser(description="Build a static mirror of the origin site.")
    parser.add_argument("--creator", default=None, help="Name recorded as the job's creator")
    parser.add_argument("--status", action="store_true", help="Print the current job status and exit")
    parser.add_argument("--cancel", action="store_true", help="Cancel the running job and exit")
    parser.add_argument(
        "--resume",
        action="store_true",
        help="Continue the existing job instead of starting a new one",
    )
    args = parser.parse_args()

    init_db()
    manager = ArchiveManager()

    if args.status:
        print_status(manager)
        return 0

    if args.cancel:
        error = manager.cancel()
        print_status(manager)
        return 1 if error else 0

    if not args.resume:
        error = manager.start(creator_id=args.creator)
        if error is not None:
            print(f"[!] {error.message}")
            return 1

    last_message = None
    while not manager.has_finished():
        manager.continue_()
        messages = manager.get_status_messages()
        current = messages.get(manager.get_state_name())
        if current and current != last_message:
            last_message = current
            print(f"[*] {last_message}")

    print_status(manager)
    return 1 if manager.get_state_name() == "error" else 0


if __name__ == "__main__":
    sys.exit(main())
