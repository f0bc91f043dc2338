"""Test package for geo-cluster.

This package contains:
- Unit tests (test_geometry.py, test_partition.py, test_store.py, test_config.py)
- Builder and merger tests (test_builder.py, test_merger.py)
- Pipeline tests (test_pipeline.py)
- Test configuration (conftest.py)
"""
