"""
Supermarket Sales Analytics

Load raw sales records, derive calendar features and run the standing
battery of sales reports over the enriched table.
"""

__version__ = "1.0.0"
