"""
Audit package for Calculator Service.

Every calculation attempt is recorded as call history without delaying the
response to the caller.
"""
