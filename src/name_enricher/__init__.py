"""Name Enricher - person records enriched with age, gender and nationality guessed from a first name."""

__version__ = "1.0.0"
