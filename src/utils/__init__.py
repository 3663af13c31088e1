"""
Generic utility functions shared across modules.

Includes date formatting/parsing helpers, calendar differences, cron
matching, logging setup, and error classes.
"""
