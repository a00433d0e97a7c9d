"""Tests for logging setup and credential masking."""

import logging

from common.logging_config import SensitiveDataFilter, setup_logging


def _filtered(message, *args):
    record = logging.LogRecord('storage_client', logging.INFO, __file__, 1, message, args, None)
    SensitiveDataFilter().filter(record)
    return record.getMessage()


def test_authorization_signature_masked():
    message = _filtered('Authorization: AWS AKIDEXAMPLE:bWq2s1WEIj+Ydj0vQ697zp+IXMU=')

    assert 'bWq2s1WEIj' not in message
    assert 'AKIDEXAMPLE' in message


def test_url_signature_masked():
    message = _filtered('GET %s', 'http://h/b/k?Signature=abc%2Bdef%3D&Expires=1&AWSAccessKeyId=AK')

    assert 'abc%2Bdef' not in message
    assert 'Expires=1' in message


def test_secret_key_masked():
    message = _filtered("config {'secret_key': 'topsecret'}")

    assert 'topsecret' not in message


def test_plain_messages_untouched():
    assert _filtered('Uploaded /b/k in 0.10s') == 'Uploaded /b/k in 0.10s'


def test_setup_logging_is_idempotent():
    """Test repeated setup does not stack handlers."""
    logger = setup_logging('s3duplex-test', log_level='DEBUG')
    again = setup_logging('s3duplex-test', log_level='DEBUG')

    assert logger is again
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert not logger.propagate
