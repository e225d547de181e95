"""
Topological scheduling and extent inference for FunctionNode graphs.

Both backends plan the same way: collect every node reachable from the
pipeline outputs, order them producers-first, and give each one a realized
extent. Extents come, by priority, from the bounds hints, from the node's
declared extent, from its first FunctionNode dependency, and finally from
the first Buffer it reads.

Author: B.G.
"""

from ..errors import ConstructionError

_VISITING = 0
_DONE = 1


def topological_order(outputs):
    """
    Order the nodes reachable from outputs so that producers come first.

    Args:
        outputs: Sequence of FunctionNodes

    Returns:
        list of FunctionNodes, each appearing once

    Raises:
        ConstructionError: On an undefined (dangling) node, a cycle, or
            outputs spread over several graphs
    """
    outputs = list(outputs)
    if not outputs:
        raise ConstructionError("A pipeline needs at least one output")
    graph = outputs[0].graph
    for out in outputs:
        if out.graph is not graph:
            raise ConstructionError("All pipeline outputs must belong to the same graph")

    state = {}
    order = []
    for out in outputs:
        if state.get(out.index) == _DONE:
            continue
        stack = [(out, None)]
        while stack:
            node, deps = stack.pop()
            if deps is None:
                if not node.defined:
                    raise ConstructionError(f"Dangling reference to undefined node '{node.name}'")
                mark = state.get(node.index)
                if mark == _DONE:
                    continue
                if mark == _VISITING:
                    raise ConstructionError(f"Cycle detected through node '{node.name}'")
                state[node.index] = _VISITING
                deps = iter(node.dependencies())
            pending = None
            for dep in deps:
                mark = state.get(dep.index)
                if mark == _VISITING:
                    raise ConstructionError(
                        f"Cycle detected between '{node.name}' and '{dep.name}'"
                    )
                if mark is None:
                    pending = dep
                    break
            if pending is None:
                state[node.index] = _DONE
                order.append(node)
            else:
                stack.append((node, deps))
                stack.append((pending, None))
    return order


def _lookup_hint(bounds_hints, node):
    if not bounds_hints:
        return None
    for key, ext in bounds_hints.items():
        if key is node or (isinstance(key, str) and key == node.name):
            return ext
    return None


def infer_extents(order, bounds_hints=None):
    """
    Assign a realized extent to every node of a topological order.

    Args:
        order: Output of topological_order
        bounds_hints: Optional mapping FunctionNode (or node name) -> extent

    Returns:
        dict node index -> extent tuple (coordinate order)

    Raises:
        ConstructionError: If an extent cannot be inferred or has the wrong arity
    """
    extents = {}
    for node in order:
        ext = _lookup_hint(bounds_hints, node)
        if ext is None:
            ext = node.extent
        if ext is None:
            deps = node.dependencies()
            if deps:
                ext = extents[deps[0].index]
        if ext is None:
            bufs = node.buffers(clamped=True) or node.buffers(clamped=False)
            if bufs:
                ext = bufs[0].extent
        if ext is None and node.arity == 0:
            ext = ()
        if ext is None:
            raise ConstructionError(
                f"Cannot infer the extent of '{node.name}'; declare it or pass a bounds hint"
            )
        ext = tuple(int(e) for e in ext)
        if len(ext) != node.arity:
            raise ConstructionError(
                f"Extent {ext} of '{node.name}' does not match its arity {node.arity}"
            )
        extents[node.index] = ext
    return extents


__all__ = ["topological_order", "infer_extents"]
