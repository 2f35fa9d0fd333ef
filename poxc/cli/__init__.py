"""
Command-line interface for POXC.

This module provides CLI tools for:
- Running the full POXC pipeline on plate reader tables
- Reviewing per-plate calibrations
"""

__all__ = []
