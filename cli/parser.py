"""Command parser for CLI input."""

import shlex

from cli.models import (
    CommandRequest,
    ConfigCommand,
    GetCommand,
    GetUrlCommand,
    InfoCommand,
    PutCommand,
    UrlCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object (one of Put/Get/GetUrl/Info/Url/Config)

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]

    if command_name == "put":
        return _parse_put(tokens[1:])
    elif command_name == "get":
        return _parse_get(tokens[1:])
    elif command_name == "geturl":
        return _parse_geturl(tokens[1:])
    elif command_name == "info":
        return _parse_info(tokens[1:])
    elif command_name == "url":
        return _parse_url(tokens[1:])
    elif command_name == "config":
        return _parse_config(tokens[1:])
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _split_options(args: list[str], flags: set[str], valued: set[str]) -> tuple[list[str], dict]:
    """Separate positional arguments from '--flag' and '--option value' pairs."""
    positional = []
    options: dict = {}
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in flags:
            options[arg] = True
        elif arg in valued:
            if i + 1 >= len(args):
                raise ParseError(f"{arg} requires a value")
            options[arg] = args[i + 1]
            i += 1
        elif arg.startswith("--"):
            raise ParseError(f"Unknown option: {arg}")
        else:
            positional.append(arg)
        i += 1
    return positional, options


def _parse_expires(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        expires = int(value)
    except ValueError:
        raise ParseError(f"--expires must be an integer, got {value!r}")
    if expires <= 0:
        raise ParseError("--expires must be positive")
    return expires


def _parse_put(args: list[str]) -> PutCommand:
    """Parse 'put <bucket> <key> <file> [--url [--signed] [--expires N]]' command."""
    positional, options = _split_options(args, {"--url", "--signed"}, {"--expires"})
    if len(positional) != 3:
        raise ParseError("put requires exactly 3 arguments: <bucket> <key> <file>")

    gen_url = options.get("--url", False)
    if not gen_url and ("--signed" in options or "--expires" in options):
        raise ParseError("--signed and --expires require --url")

    bucket, object_key, file_path = positional
    return PutCommand(
        bucket=bucket,
        object_key=object_key,
        file_path=file_path,
        gen_url=gen_url,
        signed=options.get("--signed", False),
        expires_in=_parse_expires(options.get("--expires")),
    )


def _parse_get(args: list[str]) -> GetCommand:
    """Parse 'get <bucket> <key> <file> [--md5 B64]' command."""
    positional, options = _split_options(args, set(), {"--md5"})
    if len(positional) != 3:
        raise ParseError("get requires exactly 3 arguments: <bucket> <key> <file>")

    bucket, object_key, save_path = positional
    return GetCommand(
        bucket=bucket,
        object_key=object_key,
        save_path=save_path,
        base64_md5=options.get("--md5", ""),
    )


def _parse_geturl(args: list[str]) -> GetUrlCommand:
    """Parse 'geturl <url> <file>' command."""
    if len(args) != 2:
        raise ParseError("geturl requires exactly 2 arguments: <url> <file>")

    url, save_path = args
    if not url.startswith(("http://", "https://")):
        raise ParseError(f"Not an http(s) URL: {url}")
    return GetUrlCommand(url=url, save_path=save_path)


def _parse_info(args: list[str]) -> InfoCommand:
    """Parse 'info <bucket> <key>' command."""
    if len(args) != 2:
        raise ParseError("info requires exactly 2 arguments: <bucket> <key>")

    bucket, object_key = args
    return InfoCommand(bucket=bucket, object_key=object_key)


def _parse_url(args: list[str]) -> UrlCommand:
    """Parse 'url <bucket> <key> [--signed] [--expires N]' command."""
    positional, options = _split_options(args, {"--signed"}, {"--expires"})
    if len(positional) != 2:
        raise ParseError("url requires exactly 2 arguments: <bucket> <key>")

    bucket, object_key = positional
    return UrlCommand(
        bucket=bucket,
        object_key=object_key,
        signed=options.get("--signed", False),
        expires_in=_parse_expires(options.get("--expires")),
    )


def _parse_config(args: list[str]) -> ConfigCommand:
    """Parse 'config <host> <port> <access_key> <secret_key>' command."""
    if len(args) != 4:
        raise ParseError("config requires exactly 4 arguments: <host> <port> <access_key> <secret_key>")

    host, port_text, access_key, secret_key = args
    try:
        port = int(port_text)
    except ValueError:
        raise ParseError(f"Port must be an integer, got {port_text!r}")
    if not 0 < port < 65536:
        raise ParseError(f"Port out of range: {port}")

    return ConfigCommand(host=host, port=port, access_key=access_key, secret_key=secret_key)
