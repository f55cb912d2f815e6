"""URL validation and cleanup for citation links.

Links extracted from Markdown often carry trailing brackets or punctuation
("https://www.crunchbase.com/hub/accelerators)"). This module strips those
artifacts, adds a missing scheme, and rejects anything that is not a public
web address: citation markers, non-http schemes, loopback / private /
multicast / reserved IP literals, localhost and malformed hostnames.
"""

from __future__ import annotations

import re
import ipaddress
import logging
from urllib.parse import urlparse

from brand_metrics.analysis.types import CleanedUrl

logger = logging.getLogger(__name__)

_TRAILING_CHARS = ")]}>.,;:!?'\"*"
_WRAPPING_CHARS = "<>\"'`"
_CLOSERS = {")": "(", "]": "[", "}": "{"}

_SCHEME = re.compile(r"^([a-z][a-z0-9+.\-]*):", re.IGNORECASE)
_BARE_HOST = re.compile(r"^[a-z0-9.\-]+\.[a-z]{2,}(?:[:/?#]|$)", re.IGNORECASE)
_LABEL = re.compile(r"^[\w\-]+$")
_TLD = re.compile(r"^(?=.*[a-z])[a-z0-9\-]+$", re.IGNORECASE)

_THIS_NETWORK = ipaddress.ip_network("0.0.0.0/8")

# Second-level public suffixes under country-code TLDs
_TWO_LEVEL_SUFFIXES = frozenset(
    {
        "co.uk", "org.uk", "ac.uk", "gov.uk", "me.uk", "ltd.uk", "plc.uk",
        "com.au", "net.au", "org.au", "edu.au", "gov.au",
        "co.in", "net.in", "org.in", "gov.in", "ac.in",
        "co.nz", "org.nz", "co.jp", "ne.jp", "or.jp", "co.kr", "co.za",
        "com.br", "com.mx", "com.ar", "com.sg", "com.my", "com.hk", "com.cn", "com.tr",
        "co.id", "co.th", "com.ph", "com.pk", "com.ng", "co.ke",
    }
)  # fmt: skip


def _invalid(reason: str, raw: object) -> CleanedUrl:
    logger.debug("Rejected citation URL %r: %s", raw, reason)
    return CleanedUrl(valid=False, reason=reason)


def _strip_trailing(url: str) -> str:
    """Drop trailing punctuation left by Markdown, keeping balanced brackets."""
    while url and url[-1] in _TRAILING_CHARS:
        last = url[-1]
        opener = _CLOSERS.get(last)
        if opener is not None and url.count(opener) >= url.count(last):
            break
        url = url[:-1]
    return url


def _check_ip(host: str) -> str | None:
    """Return a rejection reason for a non-routable IP literal, None if acceptable."""
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        return None
    if ip.version == 4 and ip in _THIS_NETWORK:
        return "non-routable IP address"
    if ip.is_loopback:
        return "loopback IP address"
    if ip.is_multicast:
        return "multicast IP address"
    if ip.is_link_local:
        return "link-local IP address"
    if ip.is_private or ip.is_reserved or ip.is_unspecified:
        return "private or reserved IP address"
    return None


def is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def validate_and_clean_url(raw: object) -> CleanedUrl:
    """Validate a citation URL and normalize it.

    Args:
        raw: URL as found in a record or in response text.

    Returns:
        CleanedUrl with the cleaned URL and its lowercase domain (no www.),
        or valid=False with a reason. Never raises.
    """
    if not isinstance(raw, str) or not raw.strip():
        return _invalid("empty URL", raw)

    url = raw.strip().strip(_WRAPPING_CHARS).strip()
    if url.lower().startswith("citation_"):
        return _invalid("citation marker", raw)

    url = _strip_trailing(url)
    if not url:
        return _invalid("empty URL", raw)

    if url.startswith("//"):
        url = "https:" + url
    scheme = _SCHEME.match(url)
    if scheme and url[scheme.end() :].startswith("//"):
        if scheme.group(1).lower() not in ("http", "https"):
            return _invalid(f"unsupported scheme {scheme.group(1)!r}", raw)
    elif _BARE_HOST.match(url):
        url = "https://" + url
    else:
        return _invalid("malformed URL", raw)

    try:
        parsed = urlparse(url)
        host = parsed.hostname or ""
        _ = parsed.port
    except ValueError:
        return _invalid("malformed URL", raw)

    host = host.lower()
    if not host:
        return _invalid("missing host", raw)

    if is_ip_address(host):
        reason = _check_ip(host)
        if reason:
            return _invalid(reason, raw)
        return CleanedUrl(valid=True, cleaned_url=url, domain=host)

    if host == "localhost" or host.endswith(".localhost"):
        return _invalid("localhost", raw)
    if ".." in host or host.startswith(".") or host.endswith("."):
        return _invalid("malformed hostname", raw)

    labels = host.split(".")
    if len(labels) < 2 or not all(_LABEL.match(label) for label in labels):
        return _invalid("malformed hostname", raw)
    tld = labels[-1]
    if len(tld) < 2 or not _TLD.match(tld):
        return _invalid("invalid top-level domain", raw)

    domain = host[4:] if host.startswith("www.") else host
    return CleanedUrl(valid=True, cleaned_url=url, domain=domain)


def split_domain(domain: str) -> tuple[list[str], str, str]:
    """Split a hostname into (subdomain labels, registrable label, public suffix).

    "blog.hdfcbank.co.in" → (["blog"], "hdfcbank", "co.in")
    """
    labels = domain.lower().split(".")
    if len(labels) < 2:
        return [], domain.lower(), ""
    suffix_len = 2 if len(labels) > 2 and ".".join(labels[-2:]) in _TWO_LEVEL_SUFFIXES else 1
    suffix = ".".join(labels[-suffix_len:])
    label = labels[-suffix_len - 1]
    return labels[: -suffix_len - 1], label, suffix
