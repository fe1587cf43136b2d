"""
Configuration management for data locations, downloads, and map rendering.

Loads settings from environment variables and an optional .env file.
"""
