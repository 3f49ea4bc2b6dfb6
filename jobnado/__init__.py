"""JobNado: CV analysis, grounded job search and alert sweeps."""

__version__ = "0.1.0"
