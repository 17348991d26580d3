"""
Tests Package - Unit Tests

Test structure:
- tests/conftest.py - Shared pytest fixtures (settings, fake submitter/queue, Notion mock transport)
- tests/test_*.py - One module per component

External systems are faked in-process: Notion through httpx.MockTransport,
Redis through an in-memory queue object, SQLite through tmp_path files.
"""
