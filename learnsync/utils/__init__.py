"""Utilities for learnsync."""
