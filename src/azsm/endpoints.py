from __future__ import annotations

from urllib.parse import quote, quote_plus, urlsplit, urlunsplit

GLOBAL_ENDPOINT = "https://core.windows.net/"
CHINA_ENDPOINT = "https://core.chinacloudapi.cn/"


def get_endpoint(location: str) -> str:
    """Return the API endpoint serving ``location``.

    Mainland China has its own endpoint; the rest of the world shares one.
    """

    if "China" in location:
        return CHINA_ENDPOINT
    return GLOBAL_ENDPOINT


def _prefix_host(host: str, url: str) -> str:
    parts = urlsplit(url)
    if not parts.netloc:
        raise ValueError(f"no hostname in URL '{url}'")
    return urlunsplit(parts._replace(netloc=f"{quote_plus(host)}.{parts.netloc}"))


def management_url(endpoint: str) -> str:
    return _prefix_host("management", endpoint)


def subscription_base_url(endpoint: str, subscription_id: str) -> str:
    """Base URL under which every management call for a subscription lives."""

    return f"{management_url(endpoint).rstrip('/')}/{quote(subscription_id, safe='')}"
