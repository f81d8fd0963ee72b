from .settings import Settings, refresh_settings

__all__ = ["Settings", "refresh_settings"]
