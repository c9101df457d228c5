"""
Unit Tests Package for parkslot
"""
