"""
RestRole - Models Package

This package contains all data models used by the role manager:
- database: SQLAlchemy table definitions
- infrastructure: dataclasses for records and coordination state
- config: Pydantic models for role flags and settings
"""
