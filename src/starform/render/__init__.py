"""
StarForm Render Adapter
"""

from .renderer import FormRenderer

__all__ = ["FormRenderer"]
