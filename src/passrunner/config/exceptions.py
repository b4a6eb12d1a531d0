"""Configuration errors."""


class ConfigError(Exception):
    """The configuration file or an override could not be read or validated."""
