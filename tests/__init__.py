"""
Test suite for the Reptile Import Service.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_import_commit_service.py -v
"""
