"""
Security Module
Input validation, JWT identity and environment checks
"""
