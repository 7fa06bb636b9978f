"""
Ping CLI command.
"""

import logging

import click
from rich.console import Console

from ntool.config import get_config
from ntool.exceptions import NtoolError
from ntool.icmp.channel import RawChannel
from ntool.icmp.packet import make_payload
from ntool.ping.core import PingEngine
from ntool.utils import require_root, resolve_target

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)


@click.command("ping")
@click.argument("target")
@click.option("-n", "--count", type=click.IntRange(min=0), default=0,
              help="Number of pings to send (0 = configured default)")
@click.option("-t", "--timeout", type=float, default=None, help="Seconds to wait for each reply")
@click.option("-i", "--interval", type=float, default=None, help="Seconds between pings")
@click.option("-x", "--hex", "hex_dump", is_flag=True, help="Show hex dump of received datagrams")
def ping_cmd(target: str, count: int, timeout: float | None, interval: float | None, hex_dump: bool):
    """Ping a host with ICMP echo requests and show statistics.

    \b
    Examples:
        ntool ping 127.0.0.1
        ntool ping example.com
        ntool ping -n 6 127.0.0.1
    """
    config = get_config()

    try:
        require_root()
        address = resolve_target(target)
        channel = RawChannel.open()
    except NtoolError as e:
        logger.error(f"ping {target}: {e}")
        err_console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    engine = PingEngine(
        channel,
        address,
        count or config.ping_count,
        target=target,
        timeout=timeout if timeout is not None else config.ping_timeout,
        interval=interval if interval is not None else config.ping_interval,
        payload=make_payload(config.payload_size),
        console=console,
        hex_dump=hex_dump,
    )

    try:
        engine.run()
    except NtoolError as e:
        logger.error(f"ping {target}: {e}")
        err_console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)
