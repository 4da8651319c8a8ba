"""
docloom: integration test package

File: tests/integration/__init__.py

Purpose
- Test package marker for end-to-end builds through the public API.
"""
