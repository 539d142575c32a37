"""
Adapters package.

This package provides the following components:

- cursors: `RowCursor` adapters over DB-API cursors, SQLAlchemy results and
  pandas DataFrames (structure only, no type conversion)
- type_conversion: raw cursor value → destination field type conversion

Type conversion principles:
1. Cursor adapters pass raw values through as the driver returned them
2. Field coercion happens SOLELY in TypeConverter.convert_value
"""

from dbscan.adapters.cursors import *
from dbscan.adapters.type_conversion import SKIP, TypeConverter
