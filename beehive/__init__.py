"""
Beehive monitoring backend package.

Loads time-series sensor readings (flow, humidity, temperature, weight)
from CSV exports into per-kind measurement tables and serves the latest
hive status from those tables.

CHANGELOG:
- 2026-10-12: Initial creation
"""
