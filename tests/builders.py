import socket
import struct

from http_latency_mcp.core.models import Packet, RequestEvent, ResponseEvent

CLIENT = "10.0.0.1"
SERVER = "10.0.0.2"
CLIENT_PORT = 51000
SERVER_PORT = 80


def http_get(path="/a", host="x.com", extra=""):
    head = f"GET {path} HTTP/1.1\r\n"
    if host is not None:
        head += f"Host: {host}\r\n"
    head += extra
    return (head + "User-Agent: test\r\n\r\n").encode()


def http_status(code=200, reason="OK", body=b"hello"):
    return (
        f"HTTP/1.1 {code} {reason}\r\nContent-Length: {len(body)}\r\n\r\n".encode() + body
    )


def request_event(ts, path="/a", host="x.com", client=CLIENT, client_port=CLIENT_PORT,
                  server=SERVER, server_port=SERVER_PORT):
    headers = (f"Host: {host}",) if host is not None else ()
    return RequestEvent(
        src=client,
        src_port=client_port,
        dst=server,
        dst_port=server_port,
        ts=ts,
        request_line=f"GET {path} HTTP/1.1",
        header_lines=headers + ("Accept: */*",),
    )


def response_event(ts, success=True, client=CLIENT, client_port=CLIENT_PORT,
                   server=SERVER, server_port=SERVER_PORT):
    return ResponseEvent(
        src=server,
        src_port=server_port,
        dst=client,
        dst_port=client_port,
        ts=ts,
        status_line="HTTP/1.1 200 OK" if success else "HTTP/1.1 404 Not Found",
        is_success=success,
    )


def packet(ts, payload, src=CLIENT, src_port=CLIENT_PORT, dst=SERVER, dst_port=SERVER_PORT):
    return Packet(ts=ts, src=src, src_port=src_port, dst=dst, dst_port=dst_port, payload=payload)


def _tcp_header(src_port, dst_port):
    seq = 1
    ack = 1
    data_offset = 5 << 4
    flags = 0x18  # PSH ACK
    window = 8192
    check = 0
    urg = 0
    return struct.pack("!HHIIBBHHH",
        src_port, dst_port, seq, ack, data_offset, flags, window, check, urg
    )


def build_ipv4_tcp_frame(src_ip, dst_ip, src_port, dst_port, payload=b""):
    # Ethernet header
    dst_mac = b"\xaa\xbb\xcc\xdd\xee\xff"
    src_mac = b"\x11\x22\x33\x44\x55\x66"
    eth = dst_mac + src_mac + b"\x08\x00"

    tcphdr = _tcp_header(src_port, dst_port)

    # IPv4 header, minimal, IHL 5, proto TCP
    ver_ihl = 0x45
    total_len = 20 + len(tcphdr) + len(payload)
    iphdr = struct.pack("!BBHHHBBH4s4s",
        ver_ihl, 0, total_len, 0, 0, 64, 6, 0,
        socket.inet_aton(src_ip), socket.inet_aton(dst_ip)
    )
    return eth + iphdr + tcphdr + payload


def build_ipv6_tcp_frame(src_ip, dst_ip, src_port, dst_port, payload=b""):
    dst_mac = b"\xaa\xbb\xcc\xdd\xee\xff"
    src_mac = b"\x11\x22\x33\x44\x55\x66"
    eth = dst_mac + src_mac + b"\x86\xdd"

    tcphdr = _tcp_header(src_port, dst_port)
    iphdr = struct.pack("!IHBB16s16s",
        6 << 28, len(tcphdr) + len(payload), 6, 64,
        socket.inet_pton(socket.AF_INET6, src_ip), socket.inet_pton(socket.AF_INET6, dst_ip)
    )
    return eth + iphdr + tcphdr + payload


def build_pcap(frames, linktype=1):
    """
    Legacy pcap, little endian, microsecond timestamps.
    frames is a list of (ts, frame bytes).
    """
    out = struct.pack("<IHHiIII", 0xA1B2C3D4, 2, 4, 0, 0, 65535, linktype)
    for ts, frame in frames:
        sec = int(ts)
        usec = int(round((ts - sec) * 1_000_000))
        out += struct.pack("<IIII", sec, usec, len(frame), len(frame)) + frame
    return out


def build_pcapng(frames, linktype=1):
    """
    pcapng with one section, one interface and enhanced packet blocks,
    little endian, default microsecond resolution.
    """
    shb = struct.pack("<IIIHHq", 0x0A0D0D0A, 28, 0x1A2B3C4D, 1, 0, -1) + struct.pack("<I", 28)
    idb = struct.pack("<IIHHI", 1, 20, linktype, 0, 65535) + struct.pack("<I", 20)

    out = shb + idb
    for ts, frame in frames:
        units = int(round(ts * 1_000_000))
        pad = (-len(frame)) % 4
        block_len = 32 + len(frame) + pad
        out += struct.pack("<IIIIIII",
            6, block_len, 0, units >> 32, units & 0xFFFFFFFF, len(frame), len(frame)
        )
        out += frame + (b"\x00" * pad) + struct.pack("<I", block_len)
    return out


def http_exchange_frames(t_req=1_700_000_000.0, t_resp=1_700_000_000.1, path="/a", host="x.com",
                         status=200, reason="OK"):
    """
    One GET and its response as (ts, frame) pairs, plus a bare ACK in between.
    """
    return [
        (t_req, build_ipv4_tcp_frame(CLIENT, SERVER, CLIENT_PORT, SERVER_PORT, http_get(path, host))),
        (t_req + 0.001, build_ipv4_tcp_frame(SERVER, CLIENT, SERVER_PORT, CLIENT_PORT)),
        (t_resp, build_ipv4_tcp_frame(SERVER, CLIENT, SERVER_PORT, CLIENT_PORT, http_status(status, reason))),
    ]
