"""
ntool command line entry point.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import signal

import click

from ntool import __version__
from ntool.logging_config import configure_logging
from ntool.ping.cli import ping_cmd
from ntool.traceroute.cli import trace_cmd


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="ntool")
@click.option("--debug", is_flag=True, help="Enable debug logging on stderr")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also write logs to this file")
def main(debug: bool, log_file: str | None):
    """ntool - ICMP ping and traceroute over raw sockets.

    Both commands need root privileges to open a raw socket.

    \b
    Examples:
        ntool ping -n 6 127.0.0.1
        ntool tr -m 10 -q 4 example.com
    """
    configure_logging(debug=debug, log_file=log_file)
    # SIGTERM takes the same finalize path as Ctrl-C
    signal.signal(signal.SIGTERM, signal.default_int_handler)


main.add_command(ping_cmd)
main.add_command(trace_cmd)


if __name__ == "__main__":
    main()
