from __future__ import annotations
from .models import FlowKey

FNV64_OFFSET = 0xCBF29CE484222325
FNV64_PRIME = 0x100000001B3
_MASK64 = 0xFFFFFFFFFFFFFFFF


def fnv1a_64(text: str) -> int:
    """
    64 bit FNV-1a over the UTF-8 bytes of text.

    Used for compact flow and URL identifiers. Lookups never rely on it alone,
    keys always carry the full tuple or string as well.
    """
    h = FNV64_OFFSET
    for b in text.encode("utf-8"):
        h ^= b
        h = (h * FNV64_PRIME) & _MASK64
    return h


def identify(src: str, src_port: int, dst: str, dst_port: int) -> FlowKey:
    """
    Directional flow key.

    Store a request with identify(req.src, req.src_port, req.dst, req.dst_port).
    Look its response up with
    identify(resp.src, resp.src_port, resp.dst, resp.dst_port).mirrored(),
    which is the same key.
    """
    return FlowKey(str(src), int(src_port), str(dst), int(dst_port))
