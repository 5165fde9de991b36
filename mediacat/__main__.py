"""Entry point for MediaCat.

Usage:
    python -m mediacat <watch|scan|single> [options] DIRECTORY
"""

import sys


def main() -> None:
    """Run the command line and exit with its status."""
    from mediacat.cli import main as cli_main

    sys.exit(cli_main())


if __name__ == "__main__":
    main()
