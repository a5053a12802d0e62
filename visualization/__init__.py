"""Visualization of occupancy results."""
