"""Matches requested certificate names against ACM certificate domain names."""

from __future__ import annotations

import logging
from typing import Any

from ..provider import paginate
from .models import CertificateRef

logger = logging.getLogger(__name__)


class CertificateResolver:
    def __init__(self, acm: Any):
        self._acm = acm

    def list_certificates(self) -> list[CertificateRef]:
        summaries = paginate(self._acm, "list_certificates", "CertificateSummaryList")
        return [
            CertificateRef(arn=s["CertificateArn"], domain_name=s.get("DomainName", ""))
            for s in summaries
        ]

    def resolve(self, requested_names: list[str]) -> list[CertificateRef]:
        """Pick, for each requested name, the first certificate whose domain contains it.

        Matching is a case-insensitive substring test. Names with no match are
        skipped, and a certificate picked by two names is attached once.
        """
        if not requested_names:
            return []

        available = self.list_certificates()
        selected: list[CertificateRef] = []

        for requested in requested_names:
            needle = requested.lower()
            match = next((c for c in available if needle in c.domain_name.lower()), None)
            if match is None:
                logger.warning("No certificate matches name '%s'", requested)
                continue
            if match not in selected:
                selected.append(match)
            logger.info("Certificate name '%s' resolved to %s", requested, match.domain_name,
                        extra={"arn": match.arn})

        return selected
