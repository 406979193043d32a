"""Service layer: record store gateway and the player session."""
