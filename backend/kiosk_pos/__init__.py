"""Back office for kiosk-style retail: cash sessions and price lists."""

__version__ = "0.1.0"
