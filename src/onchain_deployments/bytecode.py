"""Environment-dependent bytecode adaptation for onchain-deployments library."""

import logging
from typing import Callable, Sequence, Tuple

from .exceptions import BytecodeAdaptationError
from .types import BytecodePatch, NetworkConfig

logger = logging.getLogger(__name__)


def replace_all(code: bytes, placeholder: bytes, replacement: bytes) -> Tuple[bytes, int]:
    """
    Replace every occurrence of a byte pattern.

    Args:
        code: Bytecode to patch
        placeholder: Pattern embedded at compile time
        replacement: Value of the same length

    Returns:
        Tuple of (patched bytecode, number of occurrences replaced)

    Raises:
        BytecodeAdaptationError: If the lengths differ or the placeholder is empty
    """
    if not placeholder:
        raise BytecodeAdaptationError("Placeholder must not be empty")
    if len(placeholder) != len(replacement):
        raise BytecodeAdaptationError(
            f"Replacement is {len(replacement)} bytes, placeholder is {len(placeholder)} bytes"
        )

    count = code.count(placeholder)
    if count == 0:
        return code, 0
    return code.replace(placeholder, replacement), count


def adapt(
    bytecode: bytes,
    patches: Sequence[BytecodePatch],
    network: NetworkConfig,
    probe: Callable[[BytecodePatch], bytes],
) -> bytes:
    """
    Adapt init bytecode to the target network.

    Live networks get the bytecode unchanged and are never probed. On
    simulated networks each patch's placeholder is replaced by the value
    `probe` reads from the simulated dependency.

    Args:
        bytecode: Raw init bytecode from the artifact
        patches: Patches declared by the unit
        network: Target network identity
        probe: Returns the actual fingerprint for a patch

    Returns:
        Adapted bytecode
    """
    if network.live or not patches:
        return bytecode

    for patch in patches:
        replacement = probe(patch)
        bytecode, count = replace_all(bytecode, patch.placeholder, replacement)
        if count == 0:
            logger.warning(
                "placeholder 0x%s not found in bytecode (patch from %s.%s)",
                patch.placeholder.hex(), patch.source, patch.method,
            )
        else:
            logger.info(
                "replaced %d occurrence(s) of 0x%s with 0x%s",
                count, patch.placeholder.hex(), replacement.hex(),
            )
    return bytecode


def decode_fingerprint(result: bytes, size: int) -> bytes:
    """
    Extract a bytesN value from an eth_call result.

    Raises:
        BytecodeAdaptationError: If the result is too short
    """
    if len(result) < 32 or size > 32:
        raise BytecodeAdaptationError(
            f"Expected a 32-byte word holding bytes{size}, got {len(result)} bytes"
        )
    # bytesN values are left-aligned in their word
    return result[:size]
