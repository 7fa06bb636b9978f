"""
Traceroute CLI command.
"""

import logging

import click
from rich.console import Console

from ntool.config import get_config
from ntool.exceptions import NtoolError
from ntool.icmp.channel import RawChannel
from ntool.icmp.packet import make_payload
from ntool.traceroute.core import TracerouteEngine
from ntool.utils import require_root, resolve_target

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)


@click.command("tr")
@click.argument("target")
@click.option("-m", "--max-hops", type=click.IntRange(min=0), default=0,
              help="Maximum number of hops (0 = configured default)")
@click.option("-q", "--max-queries", type=click.IntRange(min=0), default=0,
              help="Probes per hop (0 = configured default)")
@click.option("-w", "--timeout", type=float, default=None, help="Seconds to wait for each probe")
@click.option("-x", "--hex", "hex_dump", is_flag=True, help="Show hex dump of received datagrams")
def trace_cmd(target: str, max_hops: int, max_queries: int, timeout: float | None, hex_dump: bool):
    """Trace the route to a host.

    \b
    Examples:
        ntool tr 127.0.0.1
        ntool tr example.com
        ntool tr -m 10 -q 4 example.com
    """
    config = get_config()

    try:
        require_root()
        address = resolve_target(target)
        channel = RawChannel.open()
    except NtoolError as e:
        logger.error(f"traceroute {target}: {e}")
        err_console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    engine = TracerouteEngine(
        channel,
        address,
        target=target,
        max_hops=max_hops or config.max_hops,
        max_queries=max_queries or config.max_queries,
        timeout=timeout if timeout is not None else config.trace_timeout,
        payload=make_payload(config.payload_size),
        console=console,
        hex_dump=hex_dump,
    )

    try:
        engine.run()
    except NtoolError as e:
        logger.error(f"traceroute {target}: {e}")
        err_console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)
