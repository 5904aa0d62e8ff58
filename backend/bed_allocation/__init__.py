"""
Hospital bed allocation service.
"""
