"""API routers."""

from flashstudy.routers import contributions, health, sets, study

__all__ = ["contributions", "health", "sets", "study"]
