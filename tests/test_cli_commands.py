"""Tests for CLI command handlers."""

from unittest.mock import Mock, patch

from common.exceptions import ProtocolError
from common.types import GetObjectResult, ObjectInfo, PutObjectResult
from cli.commands import (
    check_configured,
    handle_config,
    handle_get,
    handle_geturl,
    handle_info,
    handle_put,
    handle_url,
)
from cli.models import (
    ConfigCommand,
    GetCommand,
    GetUrlCommand,
    InfoCommand,
    PutCommand,
    UrlCommand,
)
from cli.repl import dispatch_command
from storage_client import StorageClient


def test_handle_put(sample_file):
    """Test put command handler with mocked client."""
    mock_client = Mock(spec=StorageClient)
    mock_client.put_object.return_value = PutObjectResult.succeeded('etag1', 'md5==')

    cmd = PutCommand(bucket='photos', object_key='cat.txt', file_path=str(sample_file))
    result = handle_put(cmd, client=mock_client)

    assert 'Uploaded' in result
    assert 'ETag: etag1' in result
    assert 'URL' not in result
    request = mock_client.put_object.call_args[0][0]
    assert (request.bucket, request.object_key, request.file_path) == ('photos', 'cat.txt', str(sample_file))
    assert request.progress.enabled
    assert not request.gen_url


def test_handle_put_with_url_uses_config_expiry(sample_file, temp_config):
    """Test --url without --expires falls back to the configured lifetime."""
    mock_client = Mock(spec=StorageClient)
    mock_client.put_object.return_value = PutObjectResult.succeeded('etag1', 'md5==', 'http://h/b/k?x')
    temp_config.data['default_expires'] = 900

    cmd = PutCommand(bucket='b', object_key='k', file_path=str(sample_file), gen_url=True, signed=True)
    result = handle_put(cmd, client=mock_client, config=temp_config)

    assert 'URL: http://h/b/k?x' in result
    request = mock_client.put_object.call_args[0][0]
    assert request.gen_url and request.signed
    assert request.expires_in == 900


def test_handle_put_failure(sample_file):
    mock_client = Mock(spec=StorageClient)
    mock_client.put_object.return_value = PutObjectResult.failed(ProtocolError('AccessDenied', 403))

    cmd = PutCommand(bucket='b', object_key='k', file_path=str(sample_file))
    result = handle_put(cmd, client=mock_client)

    assert result == 'Upload failed: AccessDenied'


def test_handle_get(tmp_path):
    """Test get command handler with mocked client."""
    mock_client = Mock(spec=StorageClient)
    mock_client.get_object.return_value = GetObjectResult.succeeded(str(tmp_path / 'cat.jpg'), 2048)

    cmd = GetCommand(bucket='photos', object_key='cat.jpg', save_path=str(tmp_path / 'cat.jpg'),
                     base64_md5='md5==')
    result = handle_get(cmd, client=mock_client)

    assert 'Saved' in result
    assert '2.00 KiB' in result
    request = mock_client.get_object.call_args[0][0]
    assert not request.is_by_url
    assert request.base64_md5 == 'md5=='


def test_handle_geturl(tmp_path):
    mock_client = Mock(spec=StorageClient)
    mock_client.get_object.return_value = GetObjectResult.failed(ProtocolError('Response StatusCode(403) != 200', 403))

    cmd = GetUrlCommand(url='http://h:1/b/k', save_path=str(tmp_path / 'k'))
    result = handle_geturl(cmd, client=mock_client)

    assert result.startswith('Download failed')
    request = mock_client.get_object.call_args[0][0]
    assert request.url == 'http://h:1/b/k'


def test_handle_info():
    mock_client = Mock(spec=StorageClient)
    mock_client.get_object_info.return_value = ObjectInfo(size=512, last_modified='Mon', etag='"e"')

    result = handle_info(InfoCommand(bucket='b', object_key='k'), client=mock_client)

    assert '512 B' in result
    assert 'ETag: "e"' in result
    mock_client.get_object_info.assert_called_once_with('b', 'k')


def test_handle_info_error():
    mock_client = Mock(spec=StorageClient)
    mock_client.get_object_info.side_effect = ProtocolError('Response StatusCode(404) != 200', 404)

    result = handle_info(InfoCommand(bucket='b', object_key='k'), client=mock_client)

    assert result == 'Error: Response StatusCode(404) != 200'


def test_handle_url_unsigned_ignores_expiry():
    mock_client = Mock(spec=StorageClient)
    mock_client.generate_download_url.return_value = 'http://h/b/k'

    result = handle_url(UrlCommand(bucket='b', object_key='k'), client=mock_client)

    assert result == 'http://h/b/k'
    mock_client.generate_download_url.assert_called_once_with('b', 'k', False, 0)


def test_handle_url_signed_with_expiry():
    mock_client = Mock(spec=StorageClient)
    mock_client.generate_download_url.return_value = 'http://h/b/k?Signature=x'

    handle_url(UrlCommand(bucket='b', object_key='k', signed=True, expires_in=30), client=mock_client)

    mock_client.generate_download_url.assert_called_once_with('b', 'k', True, 30)


def test_handle_url_bad_object():
    mock_client = Mock(spec=StorageClient)
    mock_client.generate_download_url.side_effect = ProtocolError('Bad object', 404)

    result = handle_url(UrlCommand(bucket='b', object_key='k'), client=mock_client)

    assert result == 'Error: Bad object'


def test_handle_config(temp_config):
    """Test config command stores settings and drops the cached client."""
    cmd = ConfigCommand(host='10.0.0.5', port=8080, access_key='AKID', secret_key='SECRET')

    with patch('cli.commands.reset_client') as mock_reset:
        result = handle_config(cmd, config=temp_config)

    assert '10.0.0.5:8080' in result
    assert 'SECRET' not in result
    assert temp_config.get_credentials() == ('AKID', 'SECRET')
    mock_reset.assert_called_once()


def test_check_configured(temp_config):
    """Test missing credentials produce a hint to run config first."""
    temp_config.data['access_key'] = ''
    temp_config.data['secret_key'] = ''
    assert "run 'config" in check_configured(temp_config)

    temp_config.set_endpoint('10.0.0.5', 8080, 'AKID', 'SECRET')
    assert check_configured(temp_config) is None


def test_dispatch_requires_config_before_transfers(temp_config):
    """Test commands needing credentials stop early until config is run."""
    temp_config.data['access_key'] = ''
    temp_config.data['secret_key'] = ''

    with patch('cli.commands._config', temp_config), \
            patch('cli.repl.handle_info') as mock_info, \
            patch('cli.repl.handle_geturl', return_value='Saved') as mock_geturl:
        result = dispatch_command(InfoCommand(bucket='b', object_key='k'))
        assert dispatch_command(GetUrlCommand(url='http://h/b/k', save_path='out.bin')) == 'Saved'

    assert "run 'config" in result
    mock_info.assert_not_called()
    mock_geturl.assert_called_once()
