"""
Drawing BOM extractor — turns text pulled from architectural PDF and CAD
drawings into structured Bill-of-Materials records.
"""

__version__ = "1.0.0"
