"""
CLI package for fancurve

This package provides the command-line interface for
evaluating curves and serving the curve API.
"""

from .interface import main

__all__ = ['main']
