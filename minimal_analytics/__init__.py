"""
Minimal Analytics: a tiny self-hosted page-view collector.
"""

__version__ = "1.0.0"
