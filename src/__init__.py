"""
Studio Dashboard - Source Package

An admin dashboard for a small creative studio: clients, their projects,
what has been billed and received, and what is due next.

DESIGN PRINCIPLES:
1. The record store owns the data; the dashboard holds transient copies
2. Money figures are derived, never stored
3. Fail early, fail visibly
4. Every change must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Studio Dashboard Team"
