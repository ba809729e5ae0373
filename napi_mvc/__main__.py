# File: napi_mvc/__main__.py
"""
napi-mvc — Module entry point.

Allows running the scaffolder directly via::

    python -m napi_mvc generate route product

This module simply delegates to the CLI entry point defined in ``napi_mvc.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from napi_mvc.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
