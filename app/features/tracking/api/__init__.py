"""
HTTP layer for the tracking feature.
"""
