"""Web interface for human approval decisions."""

from safegate.web.app import create_app

__all__ = ["create_app"]
