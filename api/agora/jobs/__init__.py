"""Background job worker."""
