"""Zero dependency routing tree implementation with path param support.

Patterns are made of "/"-separated segments:

    /users              literal segment
    /users/:id          named parameter, matches exactly one non-empty segment
    /static...          subtree, matches /static and anything below it
"""

from contextvars import ContextVar
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Never


class FrozenDict[K, V](dict[K, V]):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._hash: int | None = None

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(frozenset(self.items()))
        return self._hash

    def _immutable(self, *args, **kwargs) -> Never:
        msg = "FrozenDict is immutable"
        raise TypeError(msg)

    __setitem__ = __delitem__ = __ior__ = _immutable
    clear = pop = popitem = setdefault = update = _immutable


NO_PARAMS: FrozenDict[str, str] = FrozenDict()

path_params: ContextVar[FrozenDict[str, str]] = ContextVar("path_params")
http_route: ContextVar[str] = ContextVar("http_route")

_SUBTREE_SUFFIX = "..."
_PARAM_PREFIX = ":"


@dataclass(slots=True, frozen=True)
class Leaf[T]:
    handler: T
    pattern: str


@dataclass(slots=True, frozen=True)
class Node[T]:
    """Segment-based trie node"""

    handlers: FrozenDict[str, Leaf[T]] = field(default_factory=FrozenDict)
    subtree: FrozenDict[str, Leaf[T]] = field(default_factory=FrozenDict)
    children: FrozenDict[str, Node[T]] = field(default_factory=FrozenDict)
    wildcard: WildCardNode[T] | None = field(default=None)


@dataclass(slots=True, frozen=True)
class WildCardNode[T]:
    name: str
    child: Node[T]


@dataclass(slots=True, frozen=True)
class Match[T]:
    handler: T
    params: FrozenDict[str, str]
    route: str


class RouteTable[T]:
    """Routing tree shared by a root router and every group derived from it.

    The tree is immutable, `add` swaps in a new one. Lookups therefore always
    see a complete tree, but registration is not meant to overlap with serving:
    once `finalize` is called `add` raises.
    """

    __slots__ = ("_finalized", "_tree")
    _tree: Node[T]
    _finalized: bool

    def __init__(self) -> None:
        self._tree = Node()
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def finalize(self) -> None:
        self._finalized = True

    def add(self, method: str, pattern: str, handler: T) -> None:
        """Registers handler for method on pattern, replacing any previous one."""
        if self._finalized:
            msg = f"cannot add route {method} {pattern}: router is finalized"
            raise RuntimeError(msg)
        self._tree = add_route(self._tree, method.upper(), pattern, handler)

    def lookup(self, method: str, path: str) -> Match[T] | None:
        return find_route(path, method.upper(), self._tree)


@lru_cache(maxsize=1024)
def find_route[T](path: str, method: str, tree: Node[T]) -> Match[T] | None:
    """Traverses the tree to find the best match for method and path.

    Each path segment priority is: exact match > named parameter match >
    subtree match. When the exact branch has no route for the rest of the
    path, the named parameter branch is tried before falling back to a
    subtree route, so the deepest subtree on the matching branch wins.
    Returns None when nothing matches.
    """
    segments = path[1:].split("/")  # assumes leading "/"
    return _walk(tree, segments, 0, method, {})


def _walk[T](
    node: Node[T],
    segments: list[str],
    i: int,
    method: str,
    params: dict[str, str],
) -> Match[T] | None:
    if i == len(segments):
        leaf = node.handlers.get(method)
        if leaf is None:
            return _subtree_match(node, method, params)
        return Match(
            handler=leaf.handler, params=FrozenDict(params), route=leaf.pattern
        )

    seg = segments[i]
    child = node.children.get(seg)
    if child is not None:  # exact match
        match = _walk(child, segments, i + 1, method, params)
        if match is not None:
            return match
    if node.wildcard is not None and seg:  # retry as named parameter
        match = _walk(
            node.wildcard.child,
            segments,
            i + 1,
            method,
            params | {node.wildcard.name: seg},
        )
        if match is not None:
            return match
    return _subtree_match(node, method, params)


def _subtree_match[T](
    node: Node[T], method: str, params: dict[str, str]
) -> Match[T] | None:
    leaf = node.subtree.get(method)
    if leaf is None:
        return None
    return Match(handler=leaf.handler, params=FrozenDict(params), route=leaf.pattern)


def add_route[T](tree: Node[T], method: str, pattern: str, handler: T) -> Node[T]:
    """add route to tree for handler on method/pattern"""
    new_tree = _construct_route_tree(method, pattern, handler)
    return _merge_trees(tree, new_tree)


def _construct_route_tree[T](method: str, pattern: str, handler: T) -> Node[T]:
    """construct tree for handler on method/pattern"""
    if not pattern.startswith("/"):
        msg = f"pattern must start with '/', provided {pattern=}"
        raise ValueError(msg)

    leaf = FrozenDict({method: Leaf(handler=handler, pattern=pattern)})
    if pattern.endswith(_SUBTREE_SUFFIX):
        # "/static..." and "/static/..." both root the subtree at /static
        path = pattern.removesuffix(_SUBTREE_SUFFIX).rstrip("/")
        segments = path[1:].split("/") if path else []
        child: Node[T] = Node(subtree=leaf)
    else:
        segments = pattern[1:].split("/")
        child = Node(handlers=leaf)

    for seg in reversed(segments):
        if seg.startswith(_PARAM_PREFIX):
            name = seg[1:]
            if not name:
                msg = f"path parameter must have a name, provided {pattern=}"
                raise ValueError(msg)
            child = Node(wildcard=WildCardNode(name=name, child=child))
        else:
            child = Node(children=FrozenDict({seg: child}))

    return child


def _merge_trees[T](tree1: Node[T], tree2: Node[T]) -> Node[T]:
    """merge tree2 into tree1, tree2's handlers win on duplicate routes"""
    if tree1.wildcard is not None and tree2.wildcard is not None:
        if tree1.wildcard.name != tree2.wildcard.name:
            msg = (
                "nodes have conflicting path parameters: "
                f":{tree1.wildcard.name} and :{tree2.wildcard.name}"
            )
            raise ValueError(msg)
        wildcard: WildCardNode[T] | None = WildCardNode(
            name=tree1.wildcard.name,
            child=_merge_trees(tree1.wildcard.child, tree2.wildcard.child),
        )
    else:
        wildcard = tree1.wildcard or tree2.wildcard

    tree1_keys = set(tree1.children.keys())
    tree2_keys = set(tree2.children.keys())
    common_keys = tree1_keys.intersection(tree2_keys)
    children: FrozenDict[str, Node[T]] = FrozenDict(
        {k: tree1.children[k] for k in tree1_keys - tree2_keys}
        | {k: tree2.children[k] for k in tree2_keys - tree1_keys}
        | {k: _merge_trees(tree1.children[k], tree2.children[k]) for k in common_keys}
    )

    return Node(
        handlers=FrozenDict(tree1.handlers | tree2.handlers),
        subtree=FrozenDict(tree1.subtree | tree2.subtree),
        children=children,
        wildcard=wildcard,
    )
