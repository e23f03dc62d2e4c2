"""
Cache package for Calculator Service.

Provides the Redis-backed cache-aside lookup of the percentage applied to
calculations.
"""
