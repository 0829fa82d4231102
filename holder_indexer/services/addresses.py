"""SS58 address encoding"""
from functools import partial
from typing import Callable

from scalecodec.utils.ss58 import ss58_encode


def encode_id(raw: bytes, ss58_prefix: int) -> str:
    return ss58_encode(raw, ss58_format=ss58_prefix)


def id_encoder(ss58_prefix: int) -> Callable[[bytes], str]:
    """Encoder for the chain's display address format"""
    return partial(encode_id, ss58_prefix=ss58_prefix)
