"""FitFuel admin dashboard: catalog, order and push-notification management."""

__version__ = "0.1.0"
