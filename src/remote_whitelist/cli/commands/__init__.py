"""CLI command modules for remote-whitelist."""

from .check import check, parse
from .config_cmd import app as config_app
from .simulate import simulate

__all__ = ["check", "config_app", "parse", "simulate"]
