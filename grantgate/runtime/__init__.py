"""
GrantGate Runtime - configuration and wiring.
"""

from grantgate.runtime.config import ConfigError, EngineConfig
from grantgate.runtime.context import RuntimeContext, build_store

__all__ = [
    "ConfigError",
    "EngineConfig",
    "RuntimeContext",
    "build_store",
]
