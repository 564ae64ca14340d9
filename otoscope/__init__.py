"""Otoscope - timing-marker editor for singing-synthesis voice banks."""

__version__ = "0.1.0"
