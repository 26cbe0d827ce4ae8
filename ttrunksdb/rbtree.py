"""Red-black tree keyed by strings, allowing duplicate keys."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional


class Color(Enum):
    RED = "red"
    BLACK = "black"


@dataclass(eq=False)
class Node:
    """A tree node holding a key, its value and insertion time."""

    key: str
    value: bytes
    color: Color = Color.RED
    left: Optional[Node] = field(default=None, repr=False)
    right: Optional[Node] = field(default=None, repr=False)
    parent: Optional[Node] = field(default=None, repr=False)
    timestamp: float = field(default_factory=time.time)


class RBTree:
    """A self-balancing binary search tree; equal keys are placed to the right."""

    def __init__(self) -> None:
        self.root: Optional[Node] = None
        self._count = 0

    def __len__(self) -> int:
        return self._count

    def search(self, key: str) -> Optional[Node]:
        """Return the node holding ``key``, or None."""
        node = self.root
        while node is not None:
            if key < node.key:
                node = node.left
            elif key > node.key:
                node = node.right
            else:
                return node
        return None

    def insert(self, key: str, value: bytes) -> Node:
        """Insert a new node and rebalance; returns the inserted node."""
        new_node = Node(key=key, value=value)
        parent: Optional[Node] = None
        current = self.root
        while current is not None:
            parent = current
            current = current.left if key < current.key else current.right

        new_node.parent = parent
        if parent is None:
            self.root = new_node
        elif key < parent.key:
            parent.left = new_node
        else:
            parent.right = new_node

        self._count += 1
        self._fix_insert(new_node)
        return new_node

    def _fix_insert(self, node: Node) -> None:
        while node is not self.root and node.parent.color is Color.RED:
            parent = node.parent
            grand = parent.parent
            if parent is grand.left:
                uncle = grand.right
                if uncle is not None and uncle.color is Color.RED:
                    parent.color = Color.BLACK
                    uncle.color = Color.BLACK
                    grand.color = Color.RED
                    node = grand
                else:
                    if node is parent.right:
                        node = parent
                        self._rotate_left(node)
                    node.parent.color = Color.BLACK
                    node.parent.parent.color = Color.RED
                    self._rotate_right(node.parent.parent)
            else:
                uncle = grand.left
                if uncle is not None and uncle.color is Color.RED:
                    parent.color = Color.BLACK
                    uncle.color = Color.BLACK
                    grand.color = Color.RED
                    node = grand
                else:
                    if node is parent.left:
                        node = parent
                        self._rotate_right(node)
                    node.parent.color = Color.BLACK
                    node.parent.parent.color = Color.RED
                    self._rotate_left(node.parent.parent)
        self.root.color = Color.BLACK

    def _replace_child(self, old: Node, new: Node) -> None:
        parent = old.parent
        new.parent = parent
        if parent is None:
            self.root = new
        elif old is parent.left:
            parent.left = new
        else:
            parent.right = new

    def _rotate_left(self, x: Node) -> None:
        y = x.right
        x.right = y.left
        if y.left is not None:
            y.left.parent = x
        self._replace_child(x, y)
        y.left = x
        x.parent = y

    def _rotate_right(self, x: Node) -> None:
        y = x.left
        x.left = y.right
        if y.right is not None:
            y.right.parent = x
        self._replace_child(x, y)
        y.right = x
        x.parent = y

    def __iter__(self) -> Iterator[Node]:
        """Yield nodes in key order."""
        stack: list[Node] = []
        node = self.root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node
            node = node.right

    def first(self) -> Optional[Node]:
        """Return the node with the smallest key, or None if empty."""
        node = self.root
        if node is None:
            return None
        while node.left is not None:
            node = node.left
        return node

    def last(self) -> Optional[Node]:
        """Return the node with the largest key, or None if empty."""
        node = self.root
        if node is None:
            return None
        while node.right is not None:
            node = node.right
        return node