"""CLI command modules for learnsync."""
