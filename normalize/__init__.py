"""
Normalize package: raw GitHub payloads to analytics models.
"""
