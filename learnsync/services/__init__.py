"""Services for learnsync."""
