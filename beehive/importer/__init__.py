"""
Measurement importer package.

Streams CSV exports of hive sensor readings into the per-kind measurement
tables: ``source`` reads rows, ``transformer`` validates them, ``batch``
buffers records, ``writer`` bulk-inserts batches, and ``driver`` runs the
whole import.

CHANGELOG:
- 2026-10-12: Initial creation
"""
