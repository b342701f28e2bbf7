"""
Test support utilities for finder-core tests.

Model definitions and helpers that are shared across test modules but
are not fixtures themselves.
"""
