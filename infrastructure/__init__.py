"""Infrastructure adapters for the Plant Buddy controller."""
