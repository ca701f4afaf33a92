"""
Storage package: computation cache, retry controller and rate-limit guard.
"""
