"""
gitlink — integration test package

File: tests/integration/__init__.py

Purpose
- Test package marker file; end-to-end tests run the CLI as a subprocess.
"""
