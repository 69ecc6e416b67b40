"""Core: wallet session context and the insights feed."""
