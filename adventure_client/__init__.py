"""Client-side session layer for a turn-based text adventure."""
