"""HTTP client for the name lookup services (agify, genderize, nationalize)."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import httpx

from name_enricher.core.errors import ExternalServiceError, NationalityNotFoundError
from name_enricher.core.settings import Settings
from name_enricher.observability.logging import get_logger


@dataclass(frozen=True)
class CountryCandidate:
    """One entry of a nationalize response."""

    country_id: str
    probability: float


def pick_most_probable(candidates: Sequence[CountryCandidate]) -> CountryCandidate | None:
    """Candidate with the strictly greatest probability; the earliest wins ties."""
    best: CountryCandidate | None = None
    for candidate in candidates:
        if best is None or candidate.probability > best.probability:
            best = candidate
    return best


class NameEnrichmentClient:
    """
    Query the three lookup services for a given first name.

    Each lookup is a single GET with no retry and no caching. Transport
    errors, non-2xx responses and undecodable payloads all raise
    :class:`ExternalServiceError`.
    """

    def __init__(
        self,
        *,
        agify_url: str = "https://api.agify.io/",
        genderize_url: str = "https://api.genderize.io/",
        nationalize_url: str = "https://api.nationalize.io/",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        logger=None,
    ):
        self.agify_url = agify_url
        self.genderize_url = genderize_url
        self.nationalize_url = nationalize_url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._logger = logger or get_logger(__name__)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        logger=None,
    ) -> NameEnrichmentClient:
        return cls(
            agify_url=settings.agify_url,
            genderize_url=settings.genderize_url,
            nationalize_url=settings.nationalize_url,
            timeout=settings.http_timeout,
            transport=transport,
            logger=logger,
        )

    async def _get_json(self, service: str, url: str, name: str) -> dict[str, Any]:
        self._logger.info("lookup_requested", service=service, name=name)
        try:
            response = await self._client.get(url, params={"name": name})
            self._logger.debug("lookup_response", service=service, status=response.status_code)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            self._logger.error("lookup_failed", service=service, status=e.response.status_code)
            raise ExternalServiceError(
                service, f"returned HTTP {e.response.status_code}", cause=e
            ) from e
        except httpx.HTTPError as e:
            self._logger.error("lookup_failed", service=service, error=str(e))
            raise ExternalServiceError(service, f"request failed: {e}", cause=e) from e
        except ValueError as e:
            self._logger.error("lookup_decode_failed", service=service, error=str(e))
            raise ExternalServiceError(service, f"failed to decode response: {e}", cause=e) from e

        if not isinstance(payload, dict):
            raise ExternalServiceError(service, "failed to decode response: expected a JSON object")
        return payload

    async def fetch_age(self, name: str) -> int:
        """Most likely age for ``name``; an unknown age (``null``) reads as 0."""
        payload = await self._get_json("agify", self.agify_url, name)
        age = payload.get("age")
        if age is None:
            age = 0
        if isinstance(age, bool) or not isinstance(age, int):
            raise ExternalServiceError("agify", f"failed to decode response: age={age!r}")
        self._logger.info("age_determined", name=name, age=age)
        return age

    async def fetch_gender_label(self, name: str) -> str:
        """Gender label for ``name``; empty when the service is unsure."""
        payload = await self._get_json("genderize", self.genderize_url, name)
        gender = payload.get("gender")
        if gender is None:
            gender = ""
        if not isinstance(gender, str):
            raise ExternalServiceError("genderize", f"failed to decode response: gender={gender!r}")
        self._logger.info("gender_determined", name=name, gender=gender)
        return gender

    async def fetch_nationality_code(self, name: str) -> str:
        """Most probable country code for ``name``.

        Raises:
            NationalityNotFoundError: The service returned no candidates.
        """
        payload = await self._get_json("nationalize", self.nationalize_url, name)
        candidates = self._parse_countries(payload.get("country"))
        best = pick_most_probable(candidates)
        if best is None:
            self._logger.warning("nationality_not_found", name=name)
            raise NationalityNotFoundError(name)
        self._logger.info(
            "nationality_determined",
            name=name,
            country_id=best.country_id,
            probability=best.probability,
        )
        return best.country_id

    @staticmethod
    def _parse_countries(raw: Any) -> list[CountryCandidate]:
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise ExternalServiceError("nationalize", "failed to decode response: country is not a list")
        candidates = []
        for entry in raw:
            try:
                country_id = entry["country_id"]
                probability = float(entry["probability"])
            except (KeyError, TypeError, ValueError) as e:
                raise ExternalServiceError(
                    "nationalize", f"failed to decode response: {entry!r}", cause=e
                ) from e
            if not isinstance(country_id, str):
                raise ExternalServiceError("nationalize", f"failed to decode response: {entry!r}")
            candidates.append(CountryCandidate(country_id=country_id, probability=probability))
        return candidates

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> NameEnrichmentClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
