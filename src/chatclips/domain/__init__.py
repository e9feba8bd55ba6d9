"""Domain layer: models, protocols and pure services."""
