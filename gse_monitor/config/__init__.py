from gse_monitor.config.settings import Settings, settings

__all__ = ["Settings", "settings"]
