"""Memory orders, model actions, clock vectors, action lists, modification-order graphs and data-race detection."""

__version__ = "0.1.0"