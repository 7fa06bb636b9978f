"""
ntool - ICMP network reachability diagnostics

Round-trip latency measurement (ping) and hop-by-hop path discovery
(traceroute) built directly on ICMP over raw IPv4 sockets.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

__version__ = "0.1.0"
__author__ = "DNS Science.io"
__copyright__ = "Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company"
