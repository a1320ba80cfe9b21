"""
app/validators package marker.
"""

from app.validators.category_validator import CategoryResolution, CategoryValidator

__all__ = [
    "CategoryResolution",
    "CategoryValidator",
]
