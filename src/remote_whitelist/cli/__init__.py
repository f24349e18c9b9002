"""CLI package for remote-whitelist."""
