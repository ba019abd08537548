"""
scoring/ - Six-pillar scoring

Modules:
    utils.py        - Decimal utilities and breakpoint-table helpers
    weights.py      - WeightConfig, profiles, weight impact, ScoringConfig
    pillars/        - The six scoring pillars
    engine.py       - Parallel pillar evaluation and weighted aggregation
    statistics.py   - Score and recommendation distributions
"""
