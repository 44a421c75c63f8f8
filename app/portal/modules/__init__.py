"""
Feature modules live under this package.

Keep module boundaries clean: each module should own its models and services,
while reusing platform primitives (actors, audit, DB session).
"""
