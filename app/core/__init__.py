"""
Core - settings, logging and the error taxonomy.
"""
