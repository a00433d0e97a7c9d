"""Shareable download links for stored objects."""

import time
from typing import Optional
from urllib.parse import quote

from storage_client.connection import ConnectionParams
from storage_client.signer import SignatureContext, sign_context


def object_path(bucket: str, object_key: str, escape_slash: bool = False) -> str:
    """
    Build the "/bucket/key" resource path as it is sent on the wire.

    Args:
        bucket: Bucket name
        object_key: Object name
        escape_slash: Percent-escape "/" inside names (download links)
    """
    safe = '' if escape_slash else '/'
    return f"/{quote(bucket, safe='')}/{quote(object_key, safe=safe)}"


def generate_download_url(params: ConnectionParams, bucket: str, object_key: str,
                          signed: bool = False, expires_in: int = 0,
                          now: Optional[float] = None) -> str:
    """
    Compose a plain or query-string-signed download URL.

    The signed form puts the Expires timestamp where the Date header
    would be in the canonical string, so the link validates without
    any request headers.

    Args:
        params: Endpoint and credentials
        bucket: Bucket name
        object_key: Object name
        signed: Append Signature/Expires/AWSAccessKeyId
        expires_in: Link lifetime in seconds
        now: Current unix time (defaults to time.time())

    Returns:
        http://<host>/<bucket>/<object>[?Signature=..&Expires=..&AWSAccessKeyId=..]
    """
    resource = object_path(bucket, object_key, escape_slash=True)
    url = f"http://{params.host}{resource}"
    if not signed:
        return url

    if now is None:
        now = time.time()
    expires = str(int(now) + int(expires_in))

    context = SignatureContext(
        method='GET',
        content_md5='',
        content_type='',
        date=expires,
        resource=resource,
    )
    sig = quote(sign_context(params.secret_key, context), safe='')
    return f"{url}?Signature={sig}&Expires={quote(expires, safe='')}&AWSAccessKeyId={params.access_key}"
