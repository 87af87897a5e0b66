"""Rate-limit storage adapters.

Counters live either in the shared SQL table (default) or in process memory;
the limiter only sees the abstract store.
"""
