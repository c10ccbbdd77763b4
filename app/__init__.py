"""
TOPAZ scoring web application
"""
