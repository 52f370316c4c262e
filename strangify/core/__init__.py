# strangify/core/__init__.py

"""Core domain models and utilities used across the strangify system.

This package provides domain types, exceptions, the rule set model and its
loader, shared by the rest of the application.
"""
