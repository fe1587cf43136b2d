"""
Map rendering for FARS accident locations.

Per-state point maps drawn over US state outlines.
"""
