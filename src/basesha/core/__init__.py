"""Resolver core: models, routes and pipeline search."""
