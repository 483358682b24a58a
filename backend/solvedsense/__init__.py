"""SolvedSense - adaptive learning analytics for solved.ac users."""

__version__ = "1.0.0"
