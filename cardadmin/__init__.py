"""
Card administration service.

A FastAPI application that manages game cards behind a single shared
admin password, with an in-memory store for local runs and a SQL-backed
store when a database URL is configured.
"""
