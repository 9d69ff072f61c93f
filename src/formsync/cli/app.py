"""CLI app setup and common utilities."""

from __future__ import annotations

import logging
from typing import List, Optional

import typer
from typer import Typer

from formsync.config import config

app = Typer(
    name="formsync",
    help="formsync: push form submissions to email-marketing platforms.",
)


@app.callback()
def init_app(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (default: FORMSYNC_LOG_LEVEL or INFO)",
    ),
):
    """Configure logging before any command runs."""
    logging.basicConfig(
        level=(log_level or config.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def parse_pairs(pairs: List[str], option: str) -> dict:
    """Parse repeated ``key=value`` options into a dict.

    Raises:
        typer.BadParameter: If an item has no ``=``
    """
    parsed = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got {pair!r}", param_hint=option)
        parsed[key] = value
    return parsed
