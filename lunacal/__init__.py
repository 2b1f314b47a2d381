"""
lunacal: a calendar with Chinese lunisolar almanac annotations.
"""
__version__ = "1.0.0"
