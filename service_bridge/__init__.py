"""
Bridge Gateway service package.
"""
