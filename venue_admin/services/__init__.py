"""
Service layer: booking lifecycle, aggregates, search and the query cache.
"""
