"""Stateless helpers: environment access, base paths and the clock."""
