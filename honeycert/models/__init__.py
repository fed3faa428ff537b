"""
Models Package
Master catalog and tenant database ORM models
"""
