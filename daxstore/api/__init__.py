"""
Local HTTP API over the record store.
"""
