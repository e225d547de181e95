"""
Test suite for PyFastImg package.

This test suite covers:
- Import tests for all modules and submodules
- Unit tests for the graph, buffers, backends and filters
- Integration tests for the benchmark pipelines
- Taichi device path, run on the CPU arch

Run with: pytest
"""
