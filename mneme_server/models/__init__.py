"""
Mneme Sync Server - Models Package

API request/response models and in-memory infrastructure models.
"""
