"""Core mathematics, data model and registries for the odds edge scanner.

This package contains pure, feed-agnostic building blocks:

- ``quotes``       — Quote / Event / Selection / EnrichedEvent data model
- ``odds_math``    — odds conversion, fair baseline, value test, arbitrage math
- ``kelly``        — fractional Kelly sizing
- ``sport_config`` — supported sports and scanner thresholds
- ``books``        — sportsbook landing-page links

Nothing in this package imports from ``backend.services``.
All modules are side-effect-free and unit-testable in isolation.
"""
