"""Shared utilities for procroute."""
