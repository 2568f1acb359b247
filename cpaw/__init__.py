"""Storage, routing and HTML views for a self-hosted clipboard web application."""

__version__ = "0.1.0"