"""Domain layer: entities and the data-grid services."""
