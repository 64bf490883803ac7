"""
Services - batch pipeline, credentials, statistics, reports and external clients.
"""
