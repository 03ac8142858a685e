"""
Chemviz 中間件模組
"""

from .exception_handler import register_exception_handlers

__all__ = ["register_exception_handlers"]
