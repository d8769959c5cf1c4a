"""Configuration for streamclient."""

from .http import TransportSettings
from .logging import LoggingSettings


__all__ = ["LoggingSettings", "TransportSettings"]
