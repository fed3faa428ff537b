"""
Services Module
Business logic built on top of tenant connection routing
"""
