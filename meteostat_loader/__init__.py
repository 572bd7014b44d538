"""
Meteostat Loader

Imports Meteostat bulk station metadata and hourly observation archives
into ClickHouse, streaming each file in fixed-size transactional batches.
"""

__version__ = "0.1.0"
