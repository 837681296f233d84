"""ZoneStack: landing zone input validation and conditional resource graphs."""

__version__ = "0.1"
