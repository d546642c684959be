from __future__ import annotations

import logging
import socket
import struct
from typing import BinaryIO, Iterator, Optional, Tuple

import dpkt

from http_latency_mcp.core.models import Packet

log = logging.getLogger(__name__)

# First four bytes of the file, read little endian.
PCAP_MAGICS = {
    0xA1B2C3D4,  # microsecond, written little endian
    0xD4C3B2A1,  # microsecond, written big endian
    0xA1B23C4D,  # nanosecond, written little endian
    0x4D3CB2A1,  # nanosecond, written big endian
}
PCAPNG_MAGIC = 0x0A0D0D0A

# Link types
DLT_NULL = 0
DLT_EN10MB = 1
DLT_RAW = (12, 14, 101)
DLT_LINUX_SLL = 113


class CaptureError(Exception):
    """
    The capture container could not be opened or parsed. Always fatal.
    """


def sniff_format(fileobj: BinaryIO) -> str:
    """
    Return "pcap" or "pcapng" from the magic number, rewinding the file.
    """
    head = fileobj.read(4)
    fileobj.seek(0)
    if len(head) < 4:
        raise CaptureError("error reading file header: file is shorter than 4 bytes")

    magic = struct.unpack("<I", head)[0]
    if magic in PCAP_MAGICS:
        return "pcap"
    if magic == PCAPNG_MAGIC:
        return "pcapng"
    raise CaptureError(f"unknown magic number 0x{magic:08x}, not a valid pcap/pcapng file")


def open_capture(fileobj: BinaryIO):
    """
    Build the dpkt reader matching the container format.
    """
    fmt = sniff_format(fileobj)
    try:
        if fmt == "pcap":
            return dpkt.pcap.Reader(fileobj)
        return dpkt.pcapng.Reader(fileobj)
    except (ValueError, KeyError, dpkt.UnpackError, struct.error) as e:
        raise CaptureError(f"error reading {fmt} file: {e}") from e


def _ip_str(raw: bytes) -> str:
    family = socket.AF_INET6 if len(raw) == 16 else socket.AF_INET
    return socket.inet_ntop(family, raw)


def _network_layer(linktype: int, buf: bytes):
    """
    Return the IP or IP6 object inside a frame, None for anything else.
    """
    if linktype == DLT_EN10MB:
        frame = dpkt.ethernet.Ethernet(buf)
        return frame.data
    if linktype == DLT_LINUX_SLL:
        return dpkt.sll.SLL(buf).data
    if linktype == DLT_NULL:
        return dpkt.loopback.Loopback(buf).data
    if linktype in DLT_RAW:
        if not buf:
            return None
        version = buf[0] >> 4
        if version == 4:
            return dpkt.ip.IP(buf)
        if version == 6:
            return dpkt.ip6.IP6(buf)
    return None


def decode_frame(linktype: int, ts: float, buf: bytes) -> Optional[Packet]:
    """
    Decode one captured frame into a Packet.

    Returns None for frames that are not TCP over IPv4/IPv6 or that carry
    no payload.
    """
    try:
        ip = _network_layer(linktype, buf)
    except (dpkt.UnpackError, struct.error, IndexError) as e:
        log.debug("skipping undecodable frame at %.6f: %s", ts, e)
        return None

    if not isinstance(ip, (dpkt.ip.IP, dpkt.ip6.IP6)):
        return None

    tcp = ip.data
    if not isinstance(tcp, dpkt.tcp.TCP):
        return None

    payload = bytes(tcp.data)
    if not payload:
        return None

    return Packet(
        ts=float(ts),
        src=_ip_str(ip.src),
        src_port=int(tcp.sport),
        dst=_ip_str(ip.dst),
        dst_port=int(tcp.dport),
        payload=payload,
    )


def iter_frames(reader) -> Iterator[Tuple[float, bytes]]:
    try:
        for ts, buf in reader:
            yield ts, buf
    except (ValueError, dpkt.UnpackError, struct.error) as e:
        raise CaptureError(f"error reading capture: {e}") from e


def read_packets(path: str) -> Iterator[Packet]:
    """
    Lazily yield every TCP segment with payload from a pcap or pcapng file.

    Raises CaptureError when the file cannot be opened or its container is
    unknown or corrupt. Individual frames that fail to decode are skipped.
    """
    try:
        f = open(path, "rb")
    except OSError as e:
        raise CaptureError(f"error opening capture file: {e}") from e

    with f:
        reader = open_capture(f)
        linktype = reader.datalink()
        log.debug("reading %s, link type %d", path, linktype)

        for ts, buf in iter_frames(reader):
            packet = decode_frame(linktype, ts, buf)
            if packet is not None:
                yield packet
