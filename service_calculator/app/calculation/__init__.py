"""
Calculation package for Calculator Service.
"""
