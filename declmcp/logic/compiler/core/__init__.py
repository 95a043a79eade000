"""Compile pipeline stages."""
