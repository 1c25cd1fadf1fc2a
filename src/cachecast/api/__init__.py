"""HTTP API for Cachecast."""
