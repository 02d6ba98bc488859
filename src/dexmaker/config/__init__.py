from dexmaker.config.settings import MarketConfig, Settings, configure_logging, get_settings

__all__ = ["MarketConfig", "Settings", "configure_logging", "get_settings"]
