"""
D&D Roll Tables.

Manage tabletop roll tables stored as JSON documents and roll against them,
following nested tables and enriching results from the D&D 5e rules API.
"""

__version__ = "0.1.0"
