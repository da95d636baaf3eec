"""Infrastructure layer: caches, result persistence and provider adapters."""
