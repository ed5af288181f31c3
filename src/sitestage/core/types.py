"""Core type definitions."""

from typing import NewType

# Site-relative path (e.g., "/", "/About/", "/About/index.html")
# Directories end with "/", files never do
SitePath = NewType("SitePath", str)

ROOT = SitePath("/")
