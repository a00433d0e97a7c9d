"""REPL with prompt_toolkit for user interaction."""

import os
import sys
from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import InMemoryHistory

from cli.commands import (
    check_configured,
    handle_config,
    handle_get,
    handle_geturl,
    handle_info,
    handle_put,
    handle_url,
    reset_client,
)
from cli.constants import (
    COMMANDS,
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from cli.models import (
    ConfigCommand,
    GetCommand,
    GetUrlCommand,
    InfoCommand,
    PutCommand,
    UrlCommand,
)
from cli.parser import ParseError, parse_command


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_welcome() -> None:
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


def dispatch_command(cmd_obj) -> str:
    """Dispatch parsed command to appropriate handler."""
    # Links fetched by URL carry their own signature
    if not isinstance(cmd_obj, (ConfigCommand, GetUrlCommand)):
        missing = check_configured()
        if missing:
            return missing

    if isinstance(cmd_obj, PutCommand):
        return handle_put(cmd_obj)
    elif isinstance(cmd_obj, GetCommand):
        return handle_get(cmd_obj)
    elif isinstance(cmd_obj, GetUrlCommand):
        return handle_geturl(cmd_obj)
    elif isinstance(cmd_obj, InfoCommand):
        return handle_info(cmd_obj)
    elif isinstance(cmd_obj, UrlCommand):
        return handle_url(cmd_obj)
    elif isinstance(cmd_obj, ConfigCommand):
        return handle_config(cmd_obj)
    else:
        return f"Unknown command type: {type(cmd_obj)}"


def repl_loop() -> None:
    """Start interactive REPL with prompt_toolkit."""
    completer = WordCompleter(COMMANDS, ignore_case=True)
    history = InMemoryHistory()
    session: PromptSession = PromptSession(
        completer=completer, history=history, style=STYLE
    )

    clear_screen()
    show_welcome()

    try:
        while True:
            try:
                user_input = session.prompt([("class:prompt", PROMPT_TEXT)])

                if not user_input.strip():
                    continue

                if user_input.strip() == "exit":
                    print("Goodbye!")
                    break

                if user_input.strip() == "help":
                    print(HELP_TEXT)
                    continue

                if user_input.strip() == "clear":
                    clear_screen()
                    show_welcome()
                    continue

                cmd_obj = parse_command(user_input)
                result = dispatch_command(cmd_obj)
                print(result)

            except ParseError as e:
                print(f"Error: {e}")
            except KeyboardInterrupt:
                continue
            except EOFError:
                print("\nGoodbye!")
                break
    finally:
        reset_client()
