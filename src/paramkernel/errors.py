"""Exceptions raised by paramKernel.

Geometric primitives never raise on degenerate input; they return a
canonical fallback instead.  The only exceptions that escape the kernel
signal a broken contract between the kernel and its caller, such as a
mapping that is not callable.
"""


class KernelContractError(ValueError):
    """A caller handed the kernel something that violates its API contract."""


def require_callable(fn, what):
    """Raise :class:`KernelContractError` unless ``fn`` is callable."""
    if not callable(fn):
        raise KernelContractError('{} must be callable, got {!r}'.format(what, fn))
    return fn


__all__ = ['KernelContractError', 'require_callable']
