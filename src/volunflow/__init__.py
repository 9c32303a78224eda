"""VolunFlow — volunteer and NGO coordination backend.

Account sessions (cookie-delivered JWT pairs with rotating refresh
tokens) and the tenant-scoped authorization every NGO admin mutation
passes through.
"""

__version__ = "0.1.0"
