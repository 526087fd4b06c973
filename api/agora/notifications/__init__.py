"""Activities (feed events) and new-notification counters."""
