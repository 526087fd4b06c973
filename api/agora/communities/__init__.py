"""Community membership."""
