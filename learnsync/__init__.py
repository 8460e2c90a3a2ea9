"""
learnsync - recovery, backup and benchmark utilities for learning-progress data
"""

__version__ = "0.3.0"
