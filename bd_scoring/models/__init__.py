"""
Domain models - BD Scoring Engine
bd_scoring/models/__init__.py

Frozen pydantic value objects for company data, market context, scoring
results and batch jobs.
"""
