"""Domain layer: pure entities, no I/O."""
