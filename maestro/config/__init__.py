from maestro.config.schema import DEFAULT_ALLOWED_DOMAINS, MaestroConfig
from maestro.config.store import ConfigStore

__all__ = ["ConfigStore", "DEFAULT_ALLOWED_DOMAINS", "MaestroConfig"]
