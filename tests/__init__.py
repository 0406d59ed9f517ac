"""
Balance of Powers geodata test suite

Structure:
- unit/: Unit tests for boundary preparation, tiles, cache, visibility and server
"""
