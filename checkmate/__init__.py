"""Checkmate - pick the one task to work on right now.

Point-based effort, weekly sprints and time-activated routines.
"""

__version__ = "0.1.0"
