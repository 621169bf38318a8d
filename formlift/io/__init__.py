"""
I/O layer for loading form definitions and expressions
"""

from formlift.io.base import FormLoaderBase
from formlift.io.json_loader import JsonFormLoader, load_expressions

__all__ = [
    "FormLoaderBase",
    "JsonFormLoader",
    "load_expressions",
]
