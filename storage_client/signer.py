"""
AWS signature version 2 canonical-string signer.

The canonical string is built from the method, exactly three header
values (Content-MD5, Content-Type, Date, in that order), the resource
path and the allow-listed sub-resource query parameters:

    PUT\\n
    <content-md5>\\n
    <content-type>\\n
    <date>\\n
    /bucket/key?acl&uploadId=7

Signing only reads headers; callers set every header that feeds the
signer first and compute Authorization last.
"""

import base64
import hashlib
import hmac
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import unquote_plus

# Query parameters that are part of the signed resource (boto 2.34 list)
SIGNED_SUBRESOURCES = frozenset({
    'acl',
    'cors',
    'defaultObjectAcl',
    'location',
    'logging',
    'partNumber',
    'policy',
    'requestPayment',
    'torrent',
    'versioning',
    'versions',
    'website',
    'uploads',
    'uploadId',
    'response-content-type',
    'response-content-language',
    'response-expires',
    'response-cache-control',
    'response-content-disposition',
    'response-content-encoding',
    'delete',
    'lifecycle',
    'tagging',
    'restore',
    'storageClass',
    'websiteConfig',
    'compose',
})

SIGNED_HEADERS = ('content-md5', 'content-type', 'date')

HeaderSource = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


@dataclass(frozen=True)
class SignatureContext:
    """
    Normalized view of a request, fully determined at sign time.

    Attributes:
        method: HTTP method, e.g. "PUT"
        content_md5: Content-MD5 header value or ""
        content_type: Content-Type header value or ""
        date: Date header value (or the Expires value for query auth)
        resource: Resource path, e.g. "/bucket/key"
        subresources: Filtered, sorted query entries ("acl", "uploadId=7")
    """
    method: str
    content_md5: str
    content_type: str
    date: str
    resource: str
    subresources: Tuple[str, ...] = ()

    @classmethod
    def from_request(cls, method: str, headers: HeaderSource,
                     resource: str, query: str = '') -> 'SignatureContext':
        values = _select_headers(headers)
        return cls(
            method=method.upper(),
            content_md5=values['content-md5'],
            content_type=values['content-type'],
            date=values['date'],
            resource=resource,
            subresources=tuple(canonical_subresources(query)),
        )

    def canonical_string(self) -> str:
        canonical = f"{self.method}\n"
        canonical += f"{self.content_md5}\n{self.content_type}\n{self.date}\n"
        canonical += self.resource
        if self.subresources:
            canonical += '?' + '&'.join(self.subresources)
        return canonical


def _select_headers(headers: HeaderSource) -> dict:
    """Pick the three signed headers case-insensitively, "" when missing."""
    items = headers.items() if hasattr(headers, 'items') else headers

    selected: dict = {}
    for name, value in items:
        key = name.lower()
        if key not in SIGNED_HEADERS:
            continue
        if isinstance(value, (list, tuple)):
            value = ' '.join(value)
        selected[key] = f"{selected[key]} {value}" if key in selected else value

    return {key: selected.get(key, '') for key in SIGNED_HEADERS}


def _parse_query(query: str) -> List[Tuple[str, Optional[str]]]:
    """Split and form-decode a raw query string ("+" is a space), keeping value-less names as None."""
    pairs: List[Tuple[str, Optional[str]]] = []
    for part in query.lstrip('?').split('&'):
        if not part:
            continue
        if '=' in part:
            name, value = part.split('=', 1)
            pairs.append((unquote_plus(name), unquote_plus(value)))
        else:
            pairs.append((unquote_plus(part), None))
    return pairs


def canonical_subresources(query: str) -> List[str]:
    """
    Filter a query string down to the signed sub-resources.

    Args:
        query: Raw query string, e.g. "foo=1&acl&uploadId=7"

    Returns:
        Entries sorted by name, values kept in their original order per
        name, e.g. ["acl", "uploadId=7"]
    """
    grouped: dict = {}
    for name, value in _parse_query(query):
        if name not in SIGNED_SUBRESOURCES:
            continue
        values = grouped.setdefault(name, [])
        if value is not None:
            values.append(value)

    entries = []
    for name in sorted(grouped):
        values = grouped[name]
        if not values:
            entries.append(name)
            continue
        entries.extend(f"{name}={value}" for value in values)
    return entries


def hmac_sha1(message: bytes, key: bytes) -> bytes:
    return hmac.new(key, message, hashlib.sha1).digest()


def sign_context(secret_key: str, context: SignatureContext) -> str:
    """Return base64(HMAC-SHA1(secret_key, canonical string))."""
    digest = hmac_sha1(context.canonical_string().encode('utf-8'),
                       secret_key.encode('utf-8'))
    return base64.b64encode(digest).decode('ascii')


def signature(secret_key: str, method: str, headers: HeaderSource,
              resource: str, query: str = '') -> str:
    """
    Compute the request signature.

    Args:
        secret_key: Secret access key
        method: HTTP method
        headers: Request headers (mapping or (name, value) pairs)
        resource: Resource path as sent on the request line
        query: Raw query string

    Returns:
        Base64-encoded HMAC-SHA1 signature
    """
    context = SignatureContext.from_request(method, headers, resource, query)
    return sign_context(secret_key, context)


def authorization_header(access_key: str, signature_value: str) -> str:
    return f"AWS {access_key}:{signature_value}"
