"""
Simple utilities shared by the registry and code-generation helpers.
"""
from .logging import get_logger
