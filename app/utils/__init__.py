"""
Utilities - CSV upload/export and report rendering.
"""
