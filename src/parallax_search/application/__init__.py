"""Application layer: search orchestration over domain entities and infrastructure."""
