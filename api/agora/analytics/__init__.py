"""Analytics event sink."""
