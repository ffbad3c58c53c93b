"""Exception hierarchy shared by the helper's modules."""


class RaurError(Exception):
    """Base class for all errors raised by raur."""


class SourceUnavailableError(RaurError):
    """A metadata source could not answer (transport, status or payload failure)."""


class InventoryError(RaurError):
    """The local package database could not be queried."""


class BuildError(RaurError):
    """An external build step (git, makepkg, pacman) could not be started."""


class ConfigError(RaurError):
    """The configuration file or a configuration value is invalid."""
