"""Entry point for ``python -m cellshell``."""

import sys

from cellshell.cli import run_cli


def main() -> None:
    sys.exit(run_cli(sys.argv[1:]))


if __name__ == "__main__":
    main()
