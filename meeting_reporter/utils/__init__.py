"""
Ambient utilities for Meeting Reporter: logging, configuration and error handling.
"""
