"""ABI helpers for onchain-deployments library."""

from typing import Any, Dict, List, Optional, Sequence

from eth_abi import encode, is_encodable
from eth_utils import keccak, to_checksum_address

from .config import hex_to_bytes
from .exceptions import ConfigurationError

AbiItem = Dict[str, Any]


def canonical_type(param: AbiItem) -> str:
    """Return the canonical ABI type of a parameter, expanding tuples."""
    typ = param["type"]
    if typ.startswith("tuple"):
        inner = ",".join(canonical_type(c) for c in param.get("components", []))
        return f"({inner}){typ[len('tuple'):]}"
    return typ


def function_signature(item: AbiItem) -> str:
    """Return e.g. "setSettlementAddress(address)" for a function ABI item."""
    types = ",".join(canonical_type(p) for p in item.get("inputs", []))
    return f"{item['name']}({types})"


def _coerce(typ: str, components: Optional[List[AbiItem]], value: Any) -> Any:
    # Arrays: strip the outermost dimension
    if typ.endswith("]"):
        base = typ[: typ.rindex("[")]
        return [_coerce(base, components, v) for v in value]

    if typ == "tuple":
        return tuple(
            _coerce(c["type"], c.get("components"), v)
            for c, v in zip(components or [], value)
        )
    if typ == "address":
        return to_checksum_address(value)
    if typ.startswith("bytes") and isinstance(value, str):
        return hex_to_bytes(value)
    if typ.startswith(("uint", "int")) and isinstance(value, str):
        return int(value, 0)
    return value


def coerce_value(param: AbiItem, value: Any, where: str) -> Any:
    """
    Convert one plan/JSON value into what eth_abi expects for a parameter.

    Raises:
        ConfigurationError: If the value cannot be encoded as the parameter's type
    """
    typ = canonical_type(param)
    try:
        coerced = _coerce(param["type"], param.get("components"), value)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"{where}: {value!r} is not a valid {typ}") from e
    if not is_encodable(typ, coerced):
        raise ConfigurationError(f"{where}: {value!r} is not a valid {typ}")
    return coerced


def coerce_values(params: Sequence[AbiItem], values: Sequence[Any], where: str) -> List[Any]:
    return [
        coerce_value(p, v, f"{where} argument {i}")
        for i, (p, v) in enumerate(zip(params, values))
    ]


def find_constructor(abi: List[AbiItem]) -> Optional[AbiItem]:
    for item in abi:
        if item.get("type") == "constructor":
            return item
    return None


def find_function(abi: List[AbiItem], name: str, arg_count: Optional[int] = None) -> AbiItem:
    """
    Find a function in an ABI by name.

    Overloads are disambiguated by argument count.

    Raises:
        ConfigurationError: If no single function matches
    """
    candidates = [
        item for item in abi
        if item.get("type") == "function" and item.get("name") == name
    ]
    if arg_count is not None and len(candidates) > 1:
        candidates = [c for c in candidates if len(c.get("inputs", [])) == arg_count]

    if not candidates:
        raise ConfigurationError(f"Function '{name}' not found in ABI")
    if len(candidates) > 1:
        raise ConfigurationError(f"Function '{name}' is ambiguous in ABI")
    return candidates[0]


def constructor_inputs(abi: List[AbiItem]) -> List[AbiItem]:
    constructor = find_constructor(abi)
    return constructor.get("inputs", []) if constructor else []


def encode_constructor_args(
    abi: List[AbiItem], values: Sequence[Any], where: str = "constructor"
) -> bytes:
    """
    ABI-encode constructor arguments (appended to the init bytecode).

    Args:
        abi: Contract ABI
        values: Resolved argument values
        where: Prefix naming the unit in error messages

    Raises:
        ConfigurationError: If the values don't fit the constructor's inputs
    """
    inputs = constructor_inputs(abi)
    if len(inputs) != len(values):
        raise ConfigurationError(
            f"{where} expects {len(inputs)} argument(s), got {len(values)}"
        )
    if not inputs:
        return b""
    return encode([canonical_type(p) for p in inputs], coerce_values(inputs, values, where))


def encode_function_call(
    abi: List[AbiItem], method: str, values: Sequence[Any], where: Optional[str] = None
) -> bytes:
    """Build call data: 4-byte selector followed by encoded arguments."""
    where = where or method
    item = find_function(abi, method, len(values))
    inputs = item.get("inputs", [])
    if len(inputs) != len(values):
        raise ConfigurationError(
            f"{where} expects {len(inputs)} argument(s), got {len(values)}"
        )
    selector = keccak(text=function_signature(item))[:4]
    return selector + encode(
        [canonical_type(p) for p in inputs], coerce_values(inputs, values, where)
    )


def encode_view_call(method: str) -> bytes:
    """Call data for a zero-argument function, no ABI required."""
    return keccak(text=f"{method}()")[:4]


def to_jsonable(value: Any) -> Any:
    """Convert encoded-argument values for JSON storage."""
    if isinstance(value, bytes):
        return "0x" + value.hex()
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value
