"""
Mneme Sync Server - Routes Package
"""
