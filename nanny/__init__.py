"""
Nanny.

Watches a file or directory and reruns commands when it changes.
Requires Python 3.11+.
"""

__version__ = "0.1.0"
