"""
Kelly's Angels Portal Backend Package

This package contains the FastAPI backend for the Kelly's Angels Inc.
website and operations portal, including:

- main.py: FastAPI application and router registration
- routers/: public intake, donation checkout and the staff, meeting and
  volunteer dashboards
- services/: Supabase table operations behind each router
"""

__version__ = "1.0.0"
