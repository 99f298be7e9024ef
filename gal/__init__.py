"""
Gal: a very simple image gallery that generates statically.

Walks source directories for JPEGs, resizes them with ImageMagick and
MozJPEG, and renders a single shuffled index page.
"""

__version__ = "0.1.0"
