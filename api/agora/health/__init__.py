"""Health check endpoints."""

from agora.health.router import router


__all__ = ["router"]
