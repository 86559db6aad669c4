"""Court booking control plane: job store, run orchestration and scheduling."""

__version__ = "0.3.0"
