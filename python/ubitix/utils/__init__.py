from .which import which

__all__ = ["which"]
