"""
HoneyCert
Multi-tenant honey certification backend with per-tenant database routing
"""

__version__ = "1.0.0"
