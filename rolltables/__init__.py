"""Random table management with weighted, cost-bounded rolls."""

__version__ = "0.3.0"
