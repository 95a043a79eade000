"""Compiler logic."""
