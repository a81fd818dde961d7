"""Exception types raised by CLB Tools operations."""


class ClbToolsError(Exception):
    """Base class for expected, user-reportable failures."""


class PresetParseError(ClbToolsError, ValueError):
    """A stats preset file does not match the fixed line/column layout."""


class MissingResourceError(ClbToolsError, LookupError):
    """A required sheet or stored property does not exist yet."""


class UnknownEntityError(ClbToolsError, KeyError):
    """A character name does not match any canonical character."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ''
