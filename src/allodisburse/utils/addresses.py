"""EVM address validation with strict EIP-55 checksum enforcement."""

from eth_utils import is_address, is_checksum_address


def is_valid_address(value: str) -> bool:
    """0x-prefixed 20-byte hex; mixed case must carry a valid EIP-55 checksum.

    All-lowercase and all-uppercase bodies carry no checksum and are accepted.
    """
    if not isinstance(value, str) or not value.startswith("0x") or not is_address(value):
        return False
    body = value[2:]
    if body in (body.lower(), body.upper()):
        return True
    return is_checksum_address(value)
