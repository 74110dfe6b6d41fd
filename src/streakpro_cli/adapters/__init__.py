"""Storage adapters (the "Adapters" side of the repository ports)."""
