"""Product catalog service for the producer/consumer marketplace."""

__version__ = "0.1.0"
