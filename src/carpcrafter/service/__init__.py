"""Service layer: generation orchestration and the gallery store."""
