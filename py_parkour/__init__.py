"""
Procedural parkour course generator.
"""

__version__ = "0.1.0"
