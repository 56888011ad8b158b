"""
Configuration package.

Re-exports
----------
engine_config : instance of EngineConfig
EngineConfig  : the class used to create that instance
"""

from .engine_config import engine_config, EngineConfig  # noqa: F401

__all__: list[str] = ["engine_config", "EngineConfig"]
