"""Domain layer: booking jobs and worker runs."""
