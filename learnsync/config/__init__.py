"""Configuration for learnsync."""
