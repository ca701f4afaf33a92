"""
Ingest package: GitHub client and fetch result types.
"""
