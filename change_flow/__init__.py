"""
change_flow: change-aware test targeting with self-healing resolution.
"""

__version__ = "0.3.0"
