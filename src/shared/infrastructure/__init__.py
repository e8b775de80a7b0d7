"""
Shared Infrastructure Layer
Database unit of work, generic repository and event publishing
"""
