"""Tests for the canonical-string signer."""

import base64
import hashlib
import hmac

from storage_client.signer import (
    SIGNED_SUBRESOURCES,
    SignatureContext,
    authorization_header,
    canonical_subresources,
    signature,
)

SECRET = 'wJalrXUtnFEMI/K7MDENG/bPxRfiCYEXAMPLEKEY'
DATE = 'Tue, 27 Mar 2007 19:36:42 +0000'


def _expected(canonical: str) -> str:
    digest = hmac.new(SECRET.encode(), canonical.encode(), hashlib.sha1).digest()
    return base64.b64encode(digest).decode()


def test_canonical_string_layout():
    """Test method, three header values and resource are joined by newlines."""
    ctx = SignatureContext.from_request(
        'put',
        {'Content-MD5': 'abc==', 'Content-Type': 'image/jpeg', 'Date': DATE},
        '/photos/puppy.jpg',
    )

    assert ctx.canonical_string() == f"PUT\nabc==\nimage/jpeg\n{DATE}\n/photos/puppy.jpg"


def test_signature_matches_hmac_sha1_of_canonical_string():
    """Test signature is base64(HMAC-SHA1(secret, canonical string))."""
    sig = signature(SECRET, 'GET', {'Date': DATE}, '/johnsmith/photos/puppy.jpg')

    assert sig == _expected(f"GET\n\n\n{DATE}\n/johnsmith/photos/puppy.jpg")


def test_signature_is_deterministic():
    """Test identical inputs always give identical signatures."""
    headers = {'Content-Type': 'text/plain', 'Date': DATE}

    first = signature(SECRET, 'PUT', headers, '/b/k', 'acl')
    second = signature(SECRET, 'PUT', dict(headers), '/b/k', 'acl')

    assert first == second


def test_missing_header_equals_empty_header():
    """Test an absent Content-MD5 signs the same as an empty one."""
    without = signature(SECRET, 'PUT', {'Date': DATE}, '/b/k')
    empty = signature(SECRET, 'PUT', {'Date': DATE, 'Content-MD5': ''}, '/b/k')

    assert without == empty


def test_header_names_are_case_insensitive():
    """Test header lookup ignores name case."""
    upper = signature(SECRET, 'PUT', {'CONTENT-TYPE': 'a/b', 'DATE': DATE}, '/b/k')
    lower = signature(SECRET, 'PUT', {'content-type': 'a/b', 'date': DATE}, '/b/k')

    assert upper == lower


def test_unsigned_headers_do_not_change_signature():
    """Test headers outside the signed three are ignored."""
    base = signature(SECRET, 'GET', {'Date': DATE}, '/b/k')
    extra = signature(SECRET, 'GET', {'Date': DATE, 'X-Trace': '123', 'Host': 'h:1'}, '/b/k')

    assert base == extra


def test_repeated_header_values_joined_with_space():
    """Test multiple values of one header are joined by a single space."""
    ctx = SignatureContext.from_request('GET', [('Content-Type', 'a'), ('Content-Type', 'b')], '/b/k')

    assert ctx.content_type == 'a b'


def test_subresources_filtered_and_sorted():
    """Test only allow-listed query names are kept, sorted by name."""
    assert canonical_subresources('foo=1&acl&uploadId=7') == ['acl', 'uploadId=7']
    assert canonical_subresources('uploadId=7&partNumber=2') == ['partNumber=2', 'uploadId=7']


def test_subresource_without_value_kept_bare():
    """Test a value-less name is emitted as the bare name."""
    ctx = SignatureContext.from_request('GET', {'Date': DATE}, '/b/k', 'acl')

    assert ctx.canonical_string().endswith('/b/k?acl')


def test_non_allow_listed_parameter_does_not_change_signature():
    """Test adding an unknown query parameter keeps the signature."""
    base = signature(SECRET, 'GET', {'Date': DATE}, '/b/k', 'acl')
    noisy = signature(SECRET, 'GET', {'Date': DATE}, '/b/k', 'acl&foo=bar&marker=x')

    assert base == noisy


def test_allow_listed_parameter_changes_signature():
    """Test a signed sub-resource is part of the signature."""
    plain = signature(SECRET, 'GET', {'Date': DATE}, '/b/k')
    with_acl = signature(SECRET, 'GET', {'Date': DATE}, '/b/k', 'acl')

    assert plain != with_acl


def test_allow_list_contents():
    """Test a few well-known sub-resources are present."""
    for name in ('acl', 'uploads', 'uploadId', 'partNumber', 'response-content-type', 'compose'):
        assert name in SIGNED_SUBRESOURCES
    assert 'prefix' not in SIGNED_SUBRESOURCES


def test_authorization_header_format():
    """Test Authorization value is "AWS <access key>:<signature>"."""
    assert authorization_header('AKID', 'c2ln') == 'AWS AKID:c2ln'


def test_subresource_values_are_form_decoded():
    """Test "+" and percent escapes in values decode before signing."""
    assert canonical_subresources('response-content-type=text+plain') == ['response-content-type=text plain']
    assert canonical_subresources('response-content-type=text%2Fplain') == ['response-content-type=text/plain']
