"""Workshop work-order engine: lifecycle, notifications and real-time chat."""

__version__ = "0.1.0"
