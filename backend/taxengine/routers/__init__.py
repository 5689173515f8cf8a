# API Routers

from . import tax

__all__ = ["tax"]
