"""
stereocrawl command-line interface.
"""

from stereocrawl import __version__

__all__ = ['__version__']
