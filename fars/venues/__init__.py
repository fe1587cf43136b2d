"""
Remote data sources for FARS files.

HTTP client for the NHTSA static download site.
"""
