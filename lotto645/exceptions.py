"""Exception types raised at the boundaries of LOTTO645."""


class LottoError(Exception):
    """Base class for all LOTTO645 errors."""


class InvalidDrawError(LottoError):
    """A draw record does not describe a valid 6/45 result."""


class ConfigurationError(LottoError):
    """The configuration file contains a value that cannot be used."""
