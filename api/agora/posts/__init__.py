"""Posts and their followers."""
