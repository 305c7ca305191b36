"""
Domain layer - Core verification models and input rules.
"""
