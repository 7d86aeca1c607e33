"""URL normalization shared by storage, diffing and locking."""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

TRACKING_PARAMS = frozenset({
    "fbclid",
    "gclid",
    "dclid",
    "msclkid",
    "mc_cid",
    "mc_eid",
    "igshid",
    "yclid",
    "_ga",
    "_hsenc",
    "_hsmi",
    "ref",
    "ref_src",
})

TRACKING_PREFIXES = ("utm_",)


def _is_tracking_param(name: str) -> bool:
    lowered = name.lower()
    return lowered in TRACKING_PARAMS or lowered.startswith(TRACKING_PREFIXES)


def normalize_url(url: str) -> str:
    """Strip tracking query parameters and the fragment.

    Must be applied to every link before it is stored in a snapshot or used
    as a content item URL, since change detection compares exact strings.

    Raises:
        ValueError: if the URL cannot be parsed
    """
    parts = urlsplit(url.strip())
    query = [
        (name, value)
        for name, value in parse_qsl(parts.query, keep_blank_values=True)
        if not _is_tracking_param(name)
    ]
    return urlunsplit((
        parts.scheme.lower(),
        parts.netloc.lower(),
        parts.path,
        urlencode(query, doseq=True),
        "",
    ))


def lock_key(url: str) -> str:
    """Key used to deduplicate concurrent scrapes of the same page."""
    return normalize_url(url).rstrip("/")
