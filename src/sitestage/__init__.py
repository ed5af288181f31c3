"""Sitestage - case-exact development server for static sites."""

__version__ = "0.1.0"
