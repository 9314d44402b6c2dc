"""Opaque prefixed ids.

Prefixes in use: team, usr, ses, srv, prx, rdp, seed, rev, aud, aip.
"""
import uuid

def gen_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"
