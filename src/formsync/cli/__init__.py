"""CLI package for formsync.

The main Typer app is created in app.py and commands are registered from each module.
"""

import formsync.cli.commands_integrations  # noqa: F401, E402
from formsync.cli.app import app

__all__ = ["app"]
