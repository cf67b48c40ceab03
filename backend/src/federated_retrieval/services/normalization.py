"""Candidate creation and URL canonicalization."""

from __future__ import annotations

import hashlib
import math
from datetime import datetime, timezone
from typing import Any, Mapping
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pydantic import ValidationError

from federated_retrieval.contracts.candidate import (
    Candidate,
    CandidateSignals,
    CandidateSource,
    ContentType,
    MetadataValue,
)
from federated_retrieval.errors import CandidateValidationError
from federated_retrieval.logging_config import get_logger

logger = get_logger(__name__)

TRACKING_PARAMS = frozenset(
    {
        "fbclid",
        "gclid",
        "dclid",
        "msclkid",
        "yclid",
        "mc_cid",
        "mc_eid",
        "igshid",
        "ref",
        "ref_src",
        "spm",
    }
)
TRACKING_PREFIXES = ("utm_",)

DEFAULT_SNIPPET_LENGTH = 240

_CONTENT_TYPES: frozenset[str] = frozenset({"web", "doc", "podcast", "tv", "movie", "news", "unknown"})
_REQUIRED_FIELDS = ("title", "url", "snippet", "source", "score")


def is_tracking_param(key: str) -> bool:
    lowered = key.lower()
    return lowered in TRACKING_PARAMS or lowered.startswith(TRACKING_PREFIXES)


def canonicalize_url(url: str) -> tuple[str, str]:
    """
    Normalize a URL for deduplication and caching.

    Lower-cases scheme and host, strips tracking query parameters, drops the
    fragment and removes trailing slashes from the path. Idempotent.

    Returns:
        Tuple of (canonical_url, canonical_domain). URLs without a host are
        returned stripped with an empty domain.
    """
    raw = url.strip()
    try:
        parts = urlsplit(raw)
    except ValueError:
        return raw, ""
    if not parts.netloc:
        return raw, ""

    netloc = parts.netloc
    userinfo = ""
    if "@" in netloc:
        userinfo, netloc = netloc.rsplit("@", 1)
        userinfo += "@"
    host = netloc.lower()

    query_pairs = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if not is_tracking_param(key)
    ]
    query = urlencode(query_pairs)
    path = parts.path.rstrip("/")

    canonical = urlunsplit((parts.scheme.lower(), userinfo + host, path, query, ""))
    return canonical, (parts.hostname or "").lower()


def derive_candidate_id(
    provider: str, provider_ref: str | None, title: str, canonical_url: str = ""
) -> str:
    """Stable id: same provider, reference, title and canonical URL always give the same id."""
    material = f"{provider}|{provider_ref or ''}|{title}|{canonical_url}"
    digest = hashlib.sha256(material.encode("utf-8")).hexdigest()
    return f"{provider}:{digest[:24]}"


def derive_content_type(url: str | None = None, document_type: str | None = None) -> ContentType:
    """Map a provider document type, or failing that the URL, to a content type."""
    if document_type:
        lowered = document_type.lower()
        if lowered in _CONTENT_TYPES:
            return lowered  # type: ignore[return-value]
        if "podcast" in lowered:
            return "podcast"
        if "tv" in lowered:
            return "tv"
        if "movie" in lowered:
            return "movie"
        if "news" in lowered:
            return "news"
        if "web" in lowered:
            return "web"
        return "doc"

    if not url:
        return "unknown"
    lower = url.lower()
    if "podcast" in lower or "spotify.com/episode" in lower:
        return "podcast"
    if "imdb.com/title" in lower or "themoviedb.org" in lower:
        return "movie"
    if "thetvdb.com" in lower or "/tv/" in lower:
        return "tv"
    return "web"


def truncate_snippet(content: str | None, max_length: int = DEFAULT_SNIPPET_LENGTH) -> str:
    if not content:
        return ""
    text = " ".join(content.split())
    if len(text) <= max_length:
        return text
    return f"{text[:max_length]}..."


def parse_published_at(value: Any) -> datetime | None:
    """Parse a provider timestamp; unparseable values become None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _coerce_score(value: Any) -> tuple[float, float]:
    try:
        raw = float(value)
    except (TypeError, ValueError) as e:
        raise CandidateValidationError(
            "score must be a number",
            context={"score": repr(value)},
        ) from e
    if math.isnan(raw) or math.isinf(raw):
        raise CandidateValidationError("score must be finite", context={"score": repr(value)})
    return max(0.0, min(1.0, raw)), raw


def _coerce_metadata(metadata: Mapping[str, Any] | None) -> dict[str, MetadataValue]:
    if not metadata:
        return {}
    coerced: dict[str, MetadataValue] = {}
    for key, value in metadata.items():
        if value is None or isinstance(value, (str, int, float, bool)):
            coerced[str(key)] = value
        elif isinstance(value, (list, tuple, set)):
            coerced[str(key)] = [str(item) for item in value]
        else:
            coerced[str(key)] = str(value)
    return coerced


def create_candidate(fields: Mapping[str, Any]) -> Candidate:
    """
    Build a Candidate from loosely-typed provider fields.

    Required: title, url, snippet, source, score. Optional: id, content_type,
    document_type, published_at, provider_rank, metadata.

    Raises:
        CandidateValidationError: when a required field is missing or invalid
    """
    missing = [name for name in _REQUIRED_FIELDS if fields.get(name) is None]
    if missing:
        raise CandidateValidationError(
            f"Missing required candidate fields: {', '.join(missing)}",
            context={"missing": missing},
        )

    title = str(fields["title"]).strip()
    url = str(fields["url"]).strip()
    if not title or not url:
        raise CandidateValidationError(
            "title and url must not be empty",
            context={"title": title, "url": url},
        )

    source_value = fields["source"]
    try:
        source = (
            source_value
            if isinstance(source_value, CandidateSource)
            else CandidateSource.model_validate(source_value)
        )
    except ValidationError as e:
        raise CandidateValidationError(
            "Invalid candidate source",
            context={"errors": e.errors(include_url=False)},
        ) from e

    score, raw_score = _coerce_score(fields["score"])
    canonical_url, domain = canonicalize_url(url)

    candidate_id = fields.get("id") or derive_candidate_id(
        source.provider, source.provider_ref, title, canonical_url
    )
    content_type = fields.get("content_type")
    if content_type not in _CONTENT_TYPES:
        content_type = derive_content_type(url, fields.get("document_type"))

    try:
        return Candidate(
            id=str(candidate_id),
            title=title,
            url=url,
            canonical_url=canonical_url,
            canonical_domain=domain,
            source=source,
            snippet=truncate_snippet(str(fields["snippet"])),
            content_type=content_type,
            published_at=parse_published_at(fields.get("published_at")),
            signals=CandidateSignals(
                score=score,
                provider_rank=fields.get("provider_rank"),
                provider_score=raw_score,
                domain=domain or None,
            ),
            metadata=_coerce_metadata(fields.get("metadata")),
        )
    except ValidationError as e:
        raise CandidateValidationError(
            "Candidate failed validation",
            context={"errors": e.errors(include_url=False), "url": url},
        ) from e
