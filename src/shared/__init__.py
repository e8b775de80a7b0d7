"""
Shared layer: configuration, logging, errors, persistence plumbing and the
HTTP envelope used by every bounded context of the service.
"""
