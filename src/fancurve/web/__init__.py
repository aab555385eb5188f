"""
Web package for fancurve

Flask application serving the curve API.
"""

from .app import create_app

__all__ = ['create_app']
