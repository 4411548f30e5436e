"""
Command line front end: explore the event stream behind an artifact URL.
Members are printed to stdout as JSON lines while they are produced; logs go to stderr.
"""

import argparse
import json
import sys

from explorer.core import LOG_LEVEL, setup_logger
from explorer.errors import ExplorerError
from explorer.explorer import LDESExplorer
from explorer.transport import Transport


def build_parser():
    parser = argparse.ArgumentParser(prog="artifact-admin", description="LDES artifact explorer")
    parser.add_argument("url", help="Artifact URL advertising an event stream in its Link header")
    parser.add_argument("-s", "--service", metavar="SERVICE_NODE", default=None,
                        help="Fetch proxy used for every request")
    parser.add_argument("--follow", action="store_true", help="Keep polling the tail for new members")
    parser.add_argument("--describe", action="store_true",
                        help="Print the stream description (view, relations) instead of members")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    parser.add_argument("--log-level", default=LOG_LEVEL, help="Logging level (default: %(default)s)")
    return parser


def main(argv=None, out=None):
    args = build_parser().parse_args(argv)
    out = out or sys.stdout
    logger = setup_logger("explorer", log_file=args.log_file, level=args.log_level.upper())

    explorer = LDESExplorer(transport=Transport(proxy=args.service))
    try:
        if args.describe:
            print(json.dumps(explorer.describe(args.url).to_dict(), indent=2), file=out)
            return 0
        for member in explorer.explore(args.url, follow=args.follow):
            print(json.dumps(member.to_dict()), file=out, flush=True)
    except ExplorerError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
