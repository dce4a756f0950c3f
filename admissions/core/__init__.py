"""Core package - configuration, logging and identifiers."""

from .config import Settings, get_settings
from .ids import generate_node_id
from .models import WireModel
from .logging_config import configure_logging

__all__ = [
    "Settings",
    "get_settings",
    "generate_node_id",
    "configure_logging",
    "WireModel",
]
