"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["put", "get", "geturl", "info", "url", "config", "clear", "exit", "help"]

STYLE = Style.from_dict(
    {
        "prompt": "#2E9BD6 bold",
        "command": "#0088ff bold",
    }
)

BLUE = "\033[38;2;46;155;214m"
GREEN = "\033[32m"
RED = "\033[31m"
RESET = "\033[0m"

LOGO = f"""{BLUE}
  ____ _____     _             _
 / ___|___ /  __| |_   _ _ __ | | _____  __
 \\___ \\ |_ \\ / _` | | | | '_ \\| |/ _ \\ \\/ /
  ___) |__) | (_| | |_| | |_) | |  __/>  <
 |____/____/ \\__,_|\\__,_| .__/|_|\\___/_/\\_\\
                        |_|
{RESET}"""

WELCOME_TITLE = "s3duplex CLI - S3-compatible object transfers"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "s3duplex> "

PROGRESS_REFRESH_SECONDS = 0.5

HELP_TEXT = """Available commands:
  put <bucket> <key> <file> [--url [--signed] [--expires N]]
                                      Upload a file; --url prints a download URL
  get <bucket> <key> <file> [--md5 B64]
                                      Download an object; --md5 verifies the saved copy
  geturl <url> <file>                 Download an object through a shareable URL
  info <bucket> <key>                 Show object size, Last-Modified and ETag
  url <bucket> <key> [--signed] [--expires N]
                                      Print a download URL for an existing object
  config <host> <port> <access_key> <secret_key>
                                      Store endpoint address and credentials
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Exit REPL

Signed URLs expire after --expires seconds (default from config, 3600).
Examples:
  config 10.0.0.5 8080 AKIDEXAMPLE wJalrXUtnFEMI
  put photos cat.jpg ./cat.jpg --url --signed --expires 600
  get photos cat.jpg ./copy.jpg --md5 1B2M2Y8AsgTpgAmY7PhCfg==
  info photos cat.jpg
  url photos cat.jpg --signed
  geturl "http://10.0.0.5:8080/photos/cat.jpg" ./cat2.jpg"""
