"""Digital ATC - point-mass flight simulation driven by scripted ATC scenarios."""

__version__ = "0.1.0"
