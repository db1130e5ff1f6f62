"""API router package."""

from svj.routers import buildings, functions, members, public, templates, votes

__all__ = [
    "buildings",
    "functions",
    "members",
    "public",
    "templates",
    "votes",
]
