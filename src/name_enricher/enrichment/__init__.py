"""Enrichment - external name lookups and the person creation pipeline."""

from name_enricher.enrichment.client import CountryCandidate, NameEnrichmentClient, pick_most_probable
from name_enricher.enrichment.orchestrator import PersonEnricher

__all__ = [
    "CountryCandidate",
    "NameEnrichmentClient",
    "PersonEnricher",
    "pick_most_probable",
]
