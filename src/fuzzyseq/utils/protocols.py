from typing import Protocol, runtime_checkable


@runtime_checkable
class HasAlphabet(Protocol):
    """Protocol for objects that possess an Alphabet (e.g. Sequence, Item)."""
    @property
    def alphabet(self) -> 'Alphabet': ...


@runtime_checkable
class HasCodes(Protocol):
    """Protocol for objects exposing their symbols as a uint8 code array (e.g. Sequence)."""
    @property
    def encoded(self) -> 'np.ndarray': ...
