"""Request-resolution pipeline: path cache, type table, resolver, delivery."""
