"""Entry point for mdkanban CLI."""

import logging
import sys

from mdkanban.cli import build_parser


def main():
    parser = build_parser()
    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    if args.verbose:
        logging.basicConfig(
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
            level=logging.DEBUG,
        )

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
