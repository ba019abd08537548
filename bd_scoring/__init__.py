"""
BD Scoring Engine

Six-pillar scoring of biotech companies for business-development decisions,
with a single-flight result cache and a concurrent batch scheduler.
"""

__version__ = "1.0.0"
