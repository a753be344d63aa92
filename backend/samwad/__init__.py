"""
samwad — Sankal Samwad district citizen-engagement portal backend.
"""

__version__ = "1.0.0"
