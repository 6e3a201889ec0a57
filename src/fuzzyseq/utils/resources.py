"""
Process-wide resources: optional dependency detection, random number generation and the conditional JIT decorator.
"""
from functools import cached_property, lru_cache
from importlib import import_module
from pathlib import Path
from typing import Callable
from warnings import warn

from numpy.random import default_rng

from fuzzyseq import DependencyWarning


# Classes --------------------------------------------------------------------------------------------------------------
class Resources:
    """
    Manages global resources like random number generators and optional dependencies.

    Attributes:
        package (str): The package name.
    """
    def __init__(self, *optional_packages: str) -> None:
        self.package = Path(__file__).parent.parent.name
        self.optional_packages = frozenset(filter(self.has_module, optional_packages))

    @cached_property
    def rng(self):
        """Returns a default numpy random number generator."""
        return default_rng()

    @staticmethod
    @lru_cache(maxsize=None)
    def has_module(module_name: str) -> bool:
        """Checks if a python package is installed."""
        try:
            import_module(module_name)
            return True
        except ImportError: return False

    def require(self, module_name: str) -> bool:
        """
        Checks for an optional package, warning at the caller if it is missing.

        Args:
            module_name: Importable name of the optional package.

        Returns:
            ``True`` if the package can be imported.
        """
        if module_name in self.optional_packages: return True
        warn(f"Optional dependency '{module_name}' is not installed; falling back to pure Python",
             DependencyWarning, stacklevel=2)
        return False


# Decorators -----------------------------------------------------------------------------------------------------------
def jit(signature_or_function=None, **options) -> Callable:
    """
    Conditional Numba JIT decorator.

    If 'numba' is installed (checked via RESOURCES), this applies `numba.jit`
    with the provided arguments. Otherwise, it returns the original function unmodified,
    ignoring any compilation options.

    Examples:
        >>> @jit  # Bare usage
        ... def func(): ...

        >>> @jit(nopython=True, cache=True)  # Configured usage
        ... def func(): ...
    """
    # 1. Fallback: Numba not installed
    if 'numba' not in RESOURCES.optional_packages:
        if callable(signature_or_function): return signature_or_function  # Handle bare @jit
        def passthrough(func: Callable) -> Callable: return func  # Handle @jit(...)
        return passthrough
    # 2. Apply Numba
    from numba import jit as real_jit
    if callable(signature_or_function): return real_jit(signature_or_function)  # Handle bare @jit
    return real_jit(signature_or_function, **options)  # Handle @jit(...)


# Constants ------------------------------------------------------------------------------------------------------------
RESOURCES = Resources('numba')
