"""
Configuration loading and validation.

Provides strongly typed settings objects for timestamp interpretation and
logging, loaded from environment variables with upfront validation.
"""
