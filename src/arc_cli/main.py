"""Console entry point (`arc-cli`, `python -m arc_cli.main`)."""

from __future__ import annotations

from arc_cli.cli.main import run


def main() -> None:
    run()


if __name__ == "__main__":
    main()
