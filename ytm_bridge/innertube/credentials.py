"""
Cookie-based credentials for YouTube Music innertube requests.

The web client authenticates with the browser's cookies plus an
Authorization header derived from the SAPISID-family cookie:

    SAPISIDHASH {unix_seconds}_{sha1("{unix_seconds} {secret} {origin}")}

The signature is bound to the current second, so it is recomputed for
every outbound request and never cached.

Accepted cookie inputs:
    Users paste cookies from many places. clean_cookies() recognises, in
    order:
        1. A request dump or header block with a "Cookie: ..." line, when
           another header or a request line is present
        2. A copied curl command with -H 'cookie: ...'
        3. A Netscape cookies.txt export
        4. A JSON cookie export ([{name, value}, ...] or {"cookies": [...]})
        5. Anything else: an optional "cookie:" prefix and all line breaks
           are removed

Usage:
    bundle = derive_credentials(raw_cookie_text)
    headers = build_headers(bundle, auth_user="0", innertube=config.innertube)
"""

import hashlib
import json
import re
import time
from dataclasses import dataclass

from ytm_bridge.core.config import InnertubeConfig
from ytm_bridge.core.exceptions import EmptyCredentialError


# Session secret cookies, highest priority first
SESSION_SECRET_COOKIES = (
    "__Secure-3PAPISID",
    "__Secure-1PAPISID",
    "SAPISID",
    "APISID",
)

VISITOR_ID_COOKIE = "VISITOR_INFO1_LIVE"

SIGNATURE_SCHEME = "SAPISIDHASH"

_HEADER_LINE_RE = re.compile(r"(?:^|\r?\n)\s*cookie:\s*([^\r\n]+)", re.IGNORECASE)
_OTHER_HEADER_RE = re.compile(r"^\s*(?!cookie:)[A-Za-z][\w-]*:\s", re.IGNORECASE | re.MULTILINE)
_REQUEST_LINE_RE = re.compile(r"^\s*[A-Z]+ \S+ HTTP/\d", re.MULTILINE)
_CURL_HEADER_RE = re.compile(r"-H\s+['\"]?cookie:\s*([^'\"]+)['\"]?", re.IGNORECASE)
_COOKIE_PREFIX_RE = re.compile(r"^cookie:\s*", re.IGNORECASE)
_LINE_BREAKS_RE = re.compile(r"[\r\n]+")


@dataclass(frozen=True)
class CredentialBundle:
    """
    Identifiers derived from one cookie string.

    Attributes:
        cookies: Cleaned cookie header value, sent verbatim.
        session_secret: Value of the first present SESSION_SECRET_COOKIES
                        entry, or None (requests then go unsigned).
        visitor_id: VISITOR_INFO1_LIVE value, or None.
    """
    cookies: str
    session_secret: str | None = None
    visitor_id: str | None = None

    @property
    def is_signed(self) -> bool:
        return self.session_secret is not None


def _strip_quotes(value: str) -> str:
    trimmed = value.strip()
    if len(trimmed) >= 2 and trimmed[0] == trimmed[-1] and trimmed[0] in ("'", '"'):
        return trimmed[1:-1]
    return trimmed


def _is_header_dump(text: str) -> bool:
    return bool(_OTHER_HEADER_RE.search(text) or _REQUEST_LINE_RE.search(text))


def _extract_cookie_header(text: str) -> str | None:
    # A lone "cookie:" paste may wrap over several lines; keep all of them
    if _is_header_dump(text):
        match = _HEADER_LINE_RE.search(text)
        if match:
            return _strip_quotes(match.group(1))
    match = _CURL_HEADER_RE.search(text)
    if match:
        return _strip_quotes(match.group(1))
    return None


def _parse_netscape_cookies(text: str) -> str | None:
    pairs = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split("\t")
        if len(parts) < 7:
            continue
        name, value = parts[5], parts[6]
        if name and value:
            pairs.append(f"{name}={value}")
    return "; ".join(pairs) if pairs else None


def _parse_json_cookies(text: str) -> str | None:
    try:
        parsed = json.loads(text)
    except ValueError:
        return None

    if isinstance(parsed, dict):
        parsed = parsed.get("cookies")
    if not isinstance(parsed, list):
        return None

    pairs = []
    for entry in parsed:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name", entry.get("Name"))
        value = entry.get("value", entry.get("Value"))
        if isinstance(name, str) and isinstance(value, str) and name and value:
            pairs.append(f"{name}={value}")
    return "; ".join(pairs) if pairs else None


def clean_cookies(raw: str | None) -> str:
    """
    Normalise pasted cookie text into a single Cookie header value.

    Args:
        raw: Cookie text in any of the accepted formats (see module docstring).

    Returns:
        The cleaned "name=value; name=value" string, or "" if nothing remains.

    Examples:
        clean_cookies("cookie:   SAPISID=abc123; VISITOR_INFO1_LIVE=xyz\\n")
            -> "SAPISID=abc123; VISITOR_INFO1_LIVE=xyz"
    """
    text = (raw or "").strip()
    if not text:
        return ""

    for parser in (_extract_cookie_header, _parse_netscape_cookies, _parse_json_cookies):
        parsed = parser(text)
        if parsed:
            return parsed

    text = _COOKIE_PREFIX_RE.sub("", text)
    return _LINE_BREAKS_RE.sub("", text).strip()


def get_cookie_value(cookies: str, name: str) -> str | None:
    """
    Read one cookie value from a "name=value; name=value" string.

    Returns:
        The value, or None if the cookie is absent or empty.
    """
    match = re.search(rf"(?:^|;\s*){re.escape(name)}=([^;]+)", cookies)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


def find_session_secret(cookies: str) -> str | None:
    """Return the first present session secret, in SESSION_SECRET_COOKIES order."""
    for name in SESSION_SECRET_COOKIES:
        value = get_cookie_value(cookies, name)
        if value:
            return value
    return None


def derive_credentials(raw: str | None) -> CredentialBundle:
    """
    Clean cookie text and pick out the identifiers used for signing.

    Args:
        raw: Cookie text as pasted by the user.

    Returns:
        CredentialBundle for the cleaned cookies. A missing session secret
        is not an error here; the bundle is simply unsigned.

    Raises:
        EmptyCredentialError: If nothing remains after cleanup.
    """
    cookies = clean_cookies(raw)
    if not cookies:
        raise EmptyCredentialError(
            "Cookie value is empty after cleanup.",
            details={"field": "cookies"}
        )

    return CredentialBundle(
        cookies=cookies,
        session_secret=find_session_secret(cookies),
        visitor_id=get_cookie_value(cookies, VISITOR_ID_COOKIE),
    )


def compute_signature(secret: str, origin: str, timestamp: int | None = None) -> str:
    """
    Compute the SAPISIDHASH Authorization value.

    Args:
        secret: Session secret cookie value.
        origin: Origin the request claims to come from.
        timestamp: Unix seconds; defaults to now.

    Returns:
        "SAPISIDHASH {timestamp}_{sha1 hex}". Deterministic for a fixed
        (secret, origin, timestamp) triple.
    """
    if timestamp is None:
        timestamp = int(time.time())
    payload = f"{timestamp} {secret} {origin}"
    digest = hashlib.sha1(payload.encode("utf-8")).hexdigest()
    return f"{SIGNATURE_SCHEME} {timestamp}_{digest}"


def build_headers(
    bundle: CredentialBundle,
    auth_user: str,
    innertube: InnertubeConfig,
    timestamp: int | None = None
) -> dict[str, str]:
    """
    Build the request headers for one account index.

    Args:
        bundle: Credentials derived from the cookies.
        auth_user: Account index sent as X-Goog-AuthUser.
        innertube: Wire constants (origin, user agent, client name).
        timestamp: Signing time override, for tests.

    Returns:
        Header dictionary. Authorization is present only for signed bundles,
        X-Goog-Visitor-Id only when the visitor cookie exists.
    """
    origin = innertube.origin
    headers = {
        "Cookie": bundle.cookies,
        "Content-Type": "application/json",
        "User-Agent": innertube.user_agent,
        "X-Goog-AuthUser": auth_user,
        "Origin": origin,
        "Referer": f"{origin}/",
        "X-Origin": origin,
        "X-Youtube-Client-Name": innertube.client_name,
    }
    if bundle.session_secret:
        headers["Authorization"] = compute_signature(bundle.session_secret, origin, timestamp)
    if bundle.visitor_id:
        headers["X-Goog-Visitor-Id"] = bundle.visitor_id
    return headers


def build_auth_user_candidates(preferred: str | None, fallback_count: int = 10) -> list[str]:
    """
    Ordered, de-duplicated account indexes to try.

    Args:
        preferred: Caller-preferred account index (tried first if non-empty).
        fallback_count: How many default indexes ("0", "1", ...) follow.

    Returns:
        e.g. build_auth_user_candidates("2", 4) -> ["2", "0", "1", "3"]
    """
    candidates = []
    primary = str(preferred if preferred is not None else "").strip()
    if primary:
        candidates.append(primary)
    for index in range(fallback_count):
        value = str(index)
        if value not in candidates:
            candidates.append(value)
    return candidates or ["0"]
