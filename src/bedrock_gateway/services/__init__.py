"""
Gateway services.
"""
