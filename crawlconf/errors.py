"""
Errors raised while resolving a run configuration.
"""


class ConfigError(ValueError):
    """Malformed or inconsistent run options. Always fatal."""
