"""
Core - Records and caching.

- registry/    - Metadata keys and relation groups
- data/        - Typed, multi-valued media records
- codec/       - Text serialization of records
- cache/       - SQLite cache tables
- config/      - Settings from environment
- monitoring/  - Prometheus metrics
- errors.py    - Error hierarchy
"""
