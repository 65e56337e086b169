"""Core domain layers of the risk engine."""
