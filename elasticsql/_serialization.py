from typing import Any, Union

import msgspec

__all__ = ("decode_json", "encode_json")


def _type_to_string(value: Any) -> str:
    return str(value)


_encoder = msgspec.json.Encoder(enc_hook=_type_to_string)
_decoder = msgspec.json.Decoder()


def encode_json(data: Any, *, as_bytes: bool = False) -> Any:
    """Encode data to JSON.

    Datetimes, decimals and UUIDs are handled natively by msgspec; anything
    else unknown to the encoder falls back to ``str()``.

    Args:
        data: Data to encode.
        as_bytes: Return ``bytes`` instead of ``str``.

    Returns:
        The encoded document.
    """
    encoded = _encoder.encode(data)
    if as_bytes:
        return encoded
    return encoded.decode("utf-8")


def decode_json(data: "Union[str, bytes]") -> Any:
    return _decoder.decode(data)
