"""
procroute - typed remote procedure calls over HTTP with batched dispatch.
"""

__version__ = "0.1.0"
__logo__ = "⇄"
