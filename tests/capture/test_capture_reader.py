import pytest

from http_latency_mcp.capture.reader import (
    CaptureError,
    DLT_EN10MB,
    decode_frame,
    read_packets,
    sniff_format,
)
from tests.builders import (
    CLIENT,
    SERVER,
    build_ipv4_tcp_frame,
    build_ipv6_tcp_frame,
    build_pcap,
    build_pcapng,
    http_exchange_frames,
)


def test_pcap_yields_only_payload_segments(write_capture):
    path = write_capture(build_pcap(http_exchange_frames()))
    packets = list(read_packets(path))

    assert len(packets) == 2
    req, resp = packets
    assert (req.src, req.src_port, req.dst, req.dst_port) == (CLIENT, 51000, SERVER, 80)
    assert req.payload.startswith(b"GET /a HTTP/1.1")
    assert req.ts == pytest.approx(1_700_000_000.0)
    assert resp.src == SERVER
    assert resp.payload.startswith(b"HTTP/1.1 200 OK")
    assert resp.ts == pytest.approx(1_700_000_000.1, abs=1e-6)


def test_pcapng_is_detected_and_read(write_capture):
    path = write_capture(build_pcapng(http_exchange_frames()), "trace.pcapng")
    with open(path, "rb") as f:
        assert sniff_format(f) == "pcapng"

    packets = list(read_packets(path))
    assert [p.payload[:4] for p in packets] == [b"GET ", b"HTTP"]
    assert packets[1].ts - packets[0].ts == pytest.approx(0.1, abs=1e-6)


def test_ipv6_segments_are_decoded():
    frame = build_ipv6_tcp_frame("2001:db8::1", "2001:db8::2", 40000, 8080, b"GET / HTTP/1.1\r\n\r\n")
    pkt = decode_frame(DLT_EN10MB, 5.0, frame)

    assert pkt is not None
    assert pkt.src == "2001:db8::1"
    assert pkt.dst == "2001:db8::2"
    assert pkt.dst_port == 8080


def test_raw_ip_link_type():
    frame = build_ipv4_tcp_frame(CLIENT, SERVER, 1234, 80, b"GET / HTTP/1.1\r\n\r\n")
    pkt = decode_frame(101, 1.0, frame[14:])
    assert pkt is not None
    assert pkt.src_port == 1234


def test_junk_frames_are_skipped():
    assert decode_frame(DLT_EN10MB, 0.0, b"\x00" * 6) is None
    assert decode_frame(DLT_EN10MB, 0.0, b"\xff" * 12 + b"\x08\x06" + b"\x00" * 28) is None
    assert decode_frame(DLT_EN10MB, 0.0, build_ipv4_tcp_frame(CLIENT, SERVER, 1, 2)) is None
    assert decode_frame(9999, 0.0, b"\x45" * 40) is None


def test_unknown_magic_is_fatal(write_capture):
    path = write_capture(b"this is not a capture file")
    with pytest.raises(CaptureError, match="unknown magic number"):
        list(read_packets(path))


def test_short_file_is_fatal(write_capture):
    path = write_capture(b"\xd4\xc3")
    with pytest.raises(CaptureError):
        list(read_packets(path))


def test_missing_file_is_fatal(tmp_path):
    with pytest.raises(CaptureError, match="error opening"):
        list(read_packets(str(tmp_path / "nope.pcap")))
