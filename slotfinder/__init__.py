"""Find upload slots missing on a destination tracker."""

from .__version__ import __version__

__all__ = ["__version__"]
