"""API routers for WineHub."""

from winehub.routers import ai, auth, upload, vintages, wineries, wines

__all__ = ["ai", "auth", "upload", "vintages", "wineries", "wines"]
