# run_client.py

"""
Starts the termchat TCP Client.
"""

import argparse
import logging
import os
import sys

from termchat.client import ChatClient
from termchat.protocol import DEFAULT_HOST, DEFAULT_PORT, MAX_USERNAME, truncate_utf8


def resolve_username(environ=os.environ):
    """ Local username from the environment, cut to fit the wire slot."""
    username = environ.get("USER") or environ.get("LOGNAME")
    if not username:
        return None
    return truncate_utf8(username, MAX_USERNAME)


def configure_logging(log_file=None, verbose=False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(message)s',
        filename=log_file,
    )


def build_parser():
    parser = argparse.ArgumentParser(description="termchat TCP Client")
    parser.add_argument(
        '--tui',
        action='store_true',
        help="Full-screen mode with scrollback (arrow keys scroll)."
    )
    parser.add_argument(
        '--quiet',
        action='store_true',
        help="Do not highlight or beep on @mentions."
    )
    parser.add_argument(
        '-p', '--port',
        type=int,
        default=DEFAULT_PORT,
        help=f"Server port number (default: {DEFAULT_PORT})"
    )
    parser.add_argument(
        '--domain',
        default=DEFAULT_HOST,
        help=f"Server host name or IP to connect to (default: {DEFAULT_HOST})"
    )
    parser.add_argument(
        '--log-file',
        help="Write log output to this file instead of stderr."
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help="Enable debug logging."
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    configure_logging(args.log_file, args.verbose)

    username = resolve_username()
    if not username:
        logging.error("Cannot determine username: set the USER environment variable.")
        return 2

    client = ChatClient(
        host=args.domain,
        port=args.port,
        username=username,
        quiet=args.quiet,
        tui=args.tui,
    )
    return client.run() # Connects and starts the input loop

if __name__ == "__main__":
    sys.exit(main())
