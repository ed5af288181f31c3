"""Data endpoints answered without file delivery."""
