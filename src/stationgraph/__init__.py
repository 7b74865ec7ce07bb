"""stationgraph: dialogue graph engine for stateful interactive fiction."""

__version__ = "0.4.0"
