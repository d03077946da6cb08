"""
OSC message encoding used by the VMC sender.

Builds raw OSC datagrams (padded address, padded type tag string, arguments)
from the python-osc wire primitives. Nothing here touches a socket, so the
byte layout can be checked on its own.
"""
import numbers

import numpy as np
from pythonosc.parsing import osc_types

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1

TAG_INT32 = 'i'
TAG_FLOAT32 = 'f'
TAG_STRING = 's'


def encode_string(value: str) -> bytes:
    """UTF-8 bytes, a NUL terminator, then NUL padding to a 4-byte boundary"""
    return osc_types.write_string(value)


def encode_int32(value: int) -> bytes:
    return osc_types.write_int(value)


def encode_float32(value: float) -> bytes:
    """Single precision; finite values beyond the float32 range become +-inf"""
    with np.errstate(over='ignore'):
        value = np.float32(value)
    return osc_types.write_float(float(value))


def arg_type_tag(arg):
    """
    Return the OSC type tag for an argument, or None when the type is not
    supported. Booleans and integers outside the signed 32-bit range are
    not supported.
    """
    if isinstance(arg, str):
        return TAG_STRING
    if isinstance(arg, bool):
        return None
    if isinstance(arg, numbers.Integral):
        return TAG_INT32 if INT32_MIN <= arg <= INT32_MAX else None
    if isinstance(arg, numbers.Real):
        return TAG_FLOAT32
    return None


def type_tag(args) -> str:
    """Type tag string (leading comma included) for the supported arguments"""
    return ',' + ''.join(tag for tag in map(arg_type_tag, args) if tag)


def build_osc_message(address: str, *args) -> bytes:
    """
    Encode an OSC message.

    Unsupported arguments are left out of both the type tag string and the
    payload rather than raising.
    """
    tags = []
    payload = b''
    for arg in args:
        tag = arg_type_tag(arg)
        if tag == TAG_INT32:
            payload += encode_int32(arg)
        elif tag == TAG_FLOAT32:
            payload += encode_float32(arg)
        elif tag == TAG_STRING:
            payload += encode_string(arg)
        else:
            continue
        tags.append(tag)

    return encode_string(address) + encode_string(',' + ''.join(tags)) + payload
