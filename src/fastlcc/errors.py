from typing import Any


def print_shape(arg) -> str:
    if hasattr(arg, "shape"):
        return f"shape={[s for s in arg.shape]}"
    return ""

def print_attr(arg, attr: str) -> str:
    return f"{attr}={getattr(arg, attr)}"

def add_attr_if_present(arg, attr: str) -> str:
    return f", {print_attr(arg, attr)}" if hasattr(arg, attr) else ""

def print_type(arg) -> str:
    return f"type={type(arg).__name__}"

def describe(arg: Any) -> str:
    """
    One line description of a tensor-like argument for error messages, e.g.
    `type=Tensor, shape=[1024, 1024], dtype=torch.float64, device=cpu`.
    """
    if hasattr(arg, "shape") and hasattr(arg, "dtype"):
        return f"{print_type(arg)}, {print_shape(arg)}{add_attr_if_present(arg, 'dtype')}{add_attr_if_present(arg, 'device')}"
    return f"{print_type(arg)}, value={arg!r}"


class LccInputError(ValueError):
    """Base class for inputs rejected at the call boundary."""


class ShapeMismatch(LccInputError):
    """
    Needle rank differs from the haystack rank, a needle extent exceeds the haystack extent,
    or a needle handed to a precomputed session does not have the session's window shape.
    """


class EmptyInput(LccInputError):
    """Haystack or needle has zero extent along some axis."""


class ScalarTypeMismatch(LccInputError, TypeError):
    """Haystack and needle do not share one scalar type (real/complex and precision)."""
