"""
Test suite for HSC Selections.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_selection_reconciler.py -v
"""
