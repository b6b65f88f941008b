"""MAC address prefix registry history and age tracking"""

__version__ = "0.1.0"
