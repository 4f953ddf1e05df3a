"""
HTTP API for Wisdom Compass.
"""
