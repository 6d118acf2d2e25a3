"""EcoLimpio core package: models, storage, safety, auth and services."""
