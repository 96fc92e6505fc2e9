"""Domain layer - shard windows, metadata and integrity services."""
