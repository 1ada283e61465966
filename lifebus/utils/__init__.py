"""
Utility functions module.

Time Semantics:
- All timestamps are timezone-aware UTC datetimes
- Persisted timestamps use a fixed-width ISO8601 format so that string
  comparison in the store matches chronological order
- Components take a clock callable so tests can inject time explicitly
"""
