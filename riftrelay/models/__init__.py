"""Domain models persisted in the game store."""
