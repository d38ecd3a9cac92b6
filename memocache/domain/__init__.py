"""Domain Layer: cache entities, value objects, errors and ports."""
