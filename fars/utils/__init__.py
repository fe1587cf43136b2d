"""
Generic utility functions shared across modules.

Includes logging setup and command-line argument helpers.
"""
