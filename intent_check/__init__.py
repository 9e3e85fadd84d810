"""
intent-check: reconcile declared application features against source code.
"""

__version__ = "0.2.0"
