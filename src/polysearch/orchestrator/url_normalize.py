"""URL canonicalization used as the dedup key for merged results."""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

TRACKING_PARAMS = frozenset(
    {
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "fbclid",
        "gclid",
        "ref",
        "si",
        "feature",
    }
)
_DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_url(raw: str) -> str:
    """Return a canonical form of ``raw`` so equivalent pages compare equal.

    Scheme and host are lowercased; fragments, default ports, tracking query
    parameters and one trailing path slash are removed; remaining query
    parameters are sorted. Strings that are not absolute URLs, or that cannot
    be parsed, are returned unchanged.
    """
    try:
        parsed = urlsplit(raw.strip())
        port = parsed.port
    except ValueError:
        return raw
    if not parsed.scheme or not parsed.hostname:
        return raw

    scheme = parsed.scheme.lower()
    host = parsed.hostname
    if ":" in host:
        host = f"[{host}]"
    if port is not None and _DEFAULT_PORTS.get(scheme) != port:
        host = f"{host}:{port}"
    userinfo, at, _ = parsed.netloc.rpartition("@")
    if at:
        host = f"{userinfo}@{host}"

    params = sorted(
        (key, value)
        for key, value in parse_qsl(parsed.query, keep_blank_values=True)
        if key.lower() not in TRACKING_PARAMS
    )

    path = parsed.path or "/"
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]

    return urlunsplit((scheme, host, path, urlencode(params), ""))
