"""
Data I/O, schema enforcement, and multi-year loading for FARS accident files.

Handles filename derivation, reading compressed CSVs, and projecting yearly
tables to the (MONTH, year) shape used by the summaries.
"""
