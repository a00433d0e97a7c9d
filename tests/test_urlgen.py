"""Tests for download URL generation."""

from urllib.parse import parse_qs, unquote, urlsplit

from storage_client.signer import SignatureContext, sign_context
from storage_client.urlgen import generate_download_url, object_path

NOW = 1700000000


def test_object_path_keeps_slash_for_requests():
    assert object_path('photos', '2024/cat one.jpg') == '/photos/2024/cat%20one.jpg'


def test_object_path_escapes_slash_for_links():
    assert object_path('photos', '2024/cat.jpg', escape_slash=True) == '/photos/2024%2Fcat.jpg'


def test_unsigned_url(connection_params):
    """Test the plain form is just scheme, host and escaped resource."""
    url = generate_download_url(connection_params, 'photos', 'cat.jpg')

    assert url == 'http://127.0.0.1:9000/photos/cat.jpg'


def test_signed_url_query_order(connection_params):
    """Test Signature, Expires and AWSAccessKeyId appear in that order."""
    url = generate_download_url(connection_params, 'photos', 'cat.jpg', signed=True,
                                expires_in=600, now=NOW)

    query = urlsplit(url).query
    assert [part.split('=', 1)[0] for part in query.split('&')] == ['Signature', 'Expires', 'AWSAccessKeyId']
    params = parse_qs(query)
    assert params['Expires'] == [str(NOW + 600)]
    assert params['AWSAccessKeyId'] == ['AKIDEXAMPLE']


def test_signed_url_signature_covers_expiry(connection_params):
    """Test the signature is computed with Expires in the date position."""
    url = generate_download_url(connection_params, 'photos', 'cat.jpg', signed=True,
                                expires_in=600, now=NOW)

    expected = sign_context('secretkeyexample', SignatureContext(
        method='GET', content_md5='', content_type='', date=str(NOW + 600), resource='/photos/cat.jpg',
    ))
    sig = urlsplit(url).query.split('&')[0].split('=', 1)[1]
    assert unquote(sig) == expected


def test_signed_url_changes_with_expiry(connection_params):
    first = generate_download_url(connection_params, 'b', 'k', signed=True, expires_in=60, now=NOW)
    second = generate_download_url(connection_params, 'b', 'k', signed=True, expires_in=120, now=NOW)

    assert first.split('&')[0] != second.split('&')[0]


def test_signature_is_percent_escaped(connection_params):
    """Test base64 characters that are unsafe in a query are escaped."""
    url = generate_download_url(connection_params, 'b', 'k', signed=True, expires_in=60, now=NOW)

    sig = urlsplit(url).query.split('&')[0].split('=', 1)[1]
    assert '+' not in sig and '/' not in sig and '=' not in sig
