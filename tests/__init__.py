"""
Accountsmith Test Suite

Unit tests for spec resolution, key consolidation, planning and emission,
plus the pyinfra renderer, plan output and CLI.
"""
