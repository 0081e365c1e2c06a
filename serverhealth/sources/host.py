"""Host identity (hostname + primary IPv4) attached to every alert."""

from __future__ import annotations

import ipaddress
import socket

import psutil
import structlog

from serverhealth.core.types import HostInfo

logger = structlog.get_logger(__name__)


def primary_ipv4() -> str | None:
    """First non-loopback IPv4 address across all interfaces."""
    for addrs in psutil.net_if_addrs().values():
        for addr in addrs:
            if addr.family != socket.AF_INET:
                continue
            try:
                ip = ipaddress.IPv4Address(addr.address)
            except ValueError:
                continue
            if not ip.is_loopback:
                return str(ip)
    return None


def get_server_info() -> HostInfo:
    """Resolve hostname and IP, falling back to placeholders on failure."""
    info = HostInfo()

    try:
        info.hostname = socket.gethostname()
    except OSError:
        logger.exception("hostname_lookup_failed")

    try:
        ip = primary_ipv4()
    except (OSError, psutil.Error):
        logger.exception("ip_lookup_failed")
        ip = None
    if ip is not None:
        info.ip = ip

    return info
