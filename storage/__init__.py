"""
Persistence layer: ORM models, async database access and seed data.
"""
