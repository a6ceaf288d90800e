"""Core remote-data access layer: classification, deadlines, caching, services."""
