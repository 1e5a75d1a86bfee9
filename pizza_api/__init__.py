"""
Pizza shop REST API.
"""
