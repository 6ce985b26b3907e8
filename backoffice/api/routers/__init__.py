"""API routers."""

from . import approvals, health

__all__ = ["approvals", "health"]
