import argparse
import json
import sys
from dotenv import load_dotenv

load_dotenv()

from tably.core.db import session, init as db_init
from tably.core.analytics import QueueAnalytics
from tably.core.exceptions import TablyAPIError
from tably.core.queue import QueueAPI
from tably.core.sweeper import ExpirySweeper
from tably.schemas.entry import QueueEntry

def dump(entry):
    return QueueEntry.model_validate(entry).model_dump(by_alias=True, mode="json")

def main():
    parser = argparse.ArgumentParser(description="Operate the Tably waitlist from the shell")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="Show waiting entries in queue order")
    for action in ("call", "complete", "cancel"):
        cmd = sub.add_parser(action, help=f"{action.capitalize()} an entry")
        cmd.add_argument("id")
    sub.add_parser("sweep", help="Cancel called entries past the timeout now")
    sub.add_parser("stats", help="Show customer and visit totals")
    args = parser.parse_args()

    try:
        db_init()
        queue = QueueAPI()
        if args.command == "list":
            result = [dump(e) for e in queue.get_queue()]
        elif args.command == "sweep":
            result = {"cancelled": ExpirySweeper().sweep()}
        elif args.command == "stats":
            result = QueueAnalytics().stats().model_dump(by_alias=True)
        else:
            entry = getattr(queue, args.command)(args.id)
            if not entry:
                print(f"Queue entry {args.id} not found", file=sys.stderr)
                sys.exit(1)
            result = dump(entry)
        print(json.dumps(result, indent=2))
    except TablyAPIError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        session.remove()

if __name__ == "__main__":
    main()
