"""
Atelier Review Studio

Curriculum progression, versioned submissions and reviewer approval
workflow for visual-design classes.
"""

__version__ = "1.0.0"
