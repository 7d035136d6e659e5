"""
Media Cache - metadata records and their SQLite cache.

Structure:
- core/      - Records, codec, cache, config, errors, metrics
- common/    - Shared utilities (logging)
- metadata/  - Audio file tag reading
"""

__version__ = "0.1.0"
