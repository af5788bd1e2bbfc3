# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Errors raised while laying out or initializing parameter views.

Everything here is synchronous and fatal to the call that raised it. Nothing
is retried and no partial state is committed before these are raised, so the
orchestrator can simply abort network construction.
"""


class ParamLayoutError(Exception):
    """Base for all parameter layout and initialization errors."""


class UnsupportedLayerTypeError(ParamLayoutError):
    """Raised when a layer config is not of the feed-forward family (no n_in/n_out)."""


class SizeMismatchError(ParamLayoutError):
    """
    Raised when a supplied buffer's length doesn't match the analytically
    expected count. Always raised before any slicing or mutation.
    """

    def __init__(self, expected: int, actual: int, message: str | None = None) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            message or f"Expected params view of length {expected}, got length {actual}"
        )


class LengthMismatchError(ParamLayoutError):
    """
    Raised when generated weights, once flattened, don't fit the target view.
    The target view is left untouched.
    """

    def __init__(
        self,
        view_length: int,
        view_shape: tuple[int, ...],
        flat_length: int,
        raw_shape: tuple[int, ...],
    ) -> None:
        self.view_length = view_length
        self.view_shape = view_shape
        self.flat_length = flat_length
        self.raw_shape = raw_shape
        super().__init__(
            "ParamView length does not match initialized weights length "
            f"(view length: {view_length}, view shape: {list(view_shape)}; "
            f"flattened length: {flat_length}, raw shape: {list(raw_shape)})"
        )


class InvalidInitSchemeError(ParamLayoutError):
    """Raised when a weight init scheme is unknown or can't be applied to the request."""
