"""
CarbonLens: implied carbon prices from climate-aligned portfolio valuations.
"""

__version__ = "0.1.0"
