"""Infrastructure adapters: persistence and worker processes."""
