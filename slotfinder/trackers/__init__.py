"""Source and destination tracker adapters."""
