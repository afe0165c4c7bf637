from .config import RuntimeConfig, load_runtime_config
from .logging import configure_logging

__all__ = [
    "RuntimeConfig",
    "load_runtime_config",
    "configure_logging",
]
