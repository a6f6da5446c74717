# File: eavgen/__main__.py
"""
EAVGen — Module entry point.

Allows running the generator directly via::

    python -m eavgen generate --config eavgen.config.yaml

This module simply delegates to the CLI entry point defined in ``eavgen.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from eavgen.cli import main as cli_main
    cli_main()


if __name__ == "__main__":
    main()
