"""
Storage subsystem.

Components:
- prefs.py: scoped SQLite key/value store
- log_sink.py: append-only error log kept under one prefs key
"""
