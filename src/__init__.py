"""ecfrcount: word counts and change detection for eCFR regulation titles."""

from ecfrcount.version import __version__

__all__ = ["__version__"]
