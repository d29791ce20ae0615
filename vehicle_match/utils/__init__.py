"""
Utility Functions and Helpers

Common utilities for the vehicle comparison pipeline.
"""

from .config_manager import ConfigManager
from . import image_ops

__all__ = ['ConfigManager', 'image_ops']
