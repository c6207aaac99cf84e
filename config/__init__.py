"""
Process-level configuration package
"""
