"""Append-only registries of objects that carry their own list node.

An object takes part in a list by exposing a :class:`Node` through
:meth:`NodeContainer.get_node`. A node can belong to at most one list, once,
and nodes are never removed.
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Iterator, Optional, TypeVar

T = TypeVar("T")


class NodeAlreadyInListError(Exception):
    """Raised when a node is pushed while it already belongs to a list."""


class Node:
    """List node embedded in a container object; starts out unlinked."""

    __slots__ = ("_owner", "_next", "_valid")

    def __init__(self) -> None:
        self._owner: object = None
        self._next: Optional[Node] = None
        self._valid = False

    def data(self, kind: type[T]) -> Optional[T]:
        """Return the owning object if the node is linked and the owner is a ``kind``."""
        if self._valid and isinstance(self._owner, kind):
            return self._owner
        return None

    def __repr__(self) -> str:
        state = type(self._owner).__name__ if self._valid else "unlinked"
        return f"Node({state})"


class NodeContainer(ABC):
    """An object that can be pushed onto an :class:`IntrusiveList`."""

    @abstractmethod
    def get_node(self) -> Node:
        """Return the node that links this object into a list."""


class IntrusiveList:
    """A list of containers of any type, built by pushing to the front."""

    def __init__(self) -> None:
        self._head: Optional[Node] = None
        self._lock = threading.Lock()

    def push(self, obj: NodeContainer) -> None:
        """Link ``obj`` at the head of the list.

        Raises :class:`NodeAlreadyInListError` if its node is already linked,
        in this list or any other.
        """
        node = obj.get_node()
        with self._lock:
            if node._valid:
                raise NodeAlreadyInListError(
                    f"{type(obj).__name__} is already in a list"
                )
            node._owner = obj
            node._valid = True
            node._next = self._head
            self._head = node

    def __iter__(self) -> Iterator[Node]:
        current = self._head
        while current is not None:
            yield current
            current = current._next