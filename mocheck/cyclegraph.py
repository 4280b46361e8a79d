"""A graph of modification-order constraints between store actions."""

from __future__ import annotations

from typing import Dict, List, Optional, TextIO

from mocheck.action import ModelAction
from mocheck.clockvector import ClockVector

__all__ = ["CycleNode", "CycleGraph"]


class CycleNode:
    """A node of a :class:`CycleGraph`, standing for one action."""

    def __init__(self, action: ModelAction) -> None:
        self.action = action
        self.edges: List[CycleNode] = []
        self.inedges: List[CycleNode] = []
        self.rmw: Optional[CycleNode] = None
        self.cv = ClockVector(None, action)

    def add_edge(self, node: "CycleNode") -> None:
        """Add a directed edge to ``node`` unless it already exists."""
        if any(edge is node for edge in self.edges):
            return
        self.edges.append(node)
        node.inedges.append(self)

    @staticmethod
    def _swap_remove(nodes: List["CycleNode"], target: "CycleNode") -> None:
        for index, node in enumerate(nodes):
            if node is target:
                nodes[index] = nodes[-1]
                nodes.pop()
                return

    def remove_in_edge(self, src: "CycleNode") -> None:
        self._swap_remove(self.inedges, src)

    def remove_edge(self, dst: "CycleNode") -> None:
        self._swap_remove(self.edges, dst)

    def set_rmw(self, node: "CycleNode") -> bool:
        """Record the RMW reading from this node; True if one was already recorded."""
        if self.rmw is not None:
            return True
        self.rmw = node
        return False

    def clear_rmw(self) -> None:
        self.rmw = None

    def __repr__(self) -> str:
        return f"CycleNode({self.action!r})"


class CycleGraph:
    """Tracks ordering constraints between actions, with reachability via clock vectors."""

    def __init__(self) -> None:
        self._nodes: Dict[ModelAction, CycleNode] = {}

    def get_node_no_create(self, act: ModelAction) -> Optional[CycleNode]:
        """Return the node for ``act``, or None if it has none."""
        return self._nodes.get(act)

    def _get_node(self, act: ModelAction) -> CycleNode:
        node = self._nodes.get(act)
        if node is None:
            node = self._nodes[act] = CycleNode(act)
        return node

    @staticmethod
    def _reachable(src: CycleNode, to: CycleNode) -> bool:
        return to.cv.synchronized_since(src.action)

    def _add_node_edge(self, fromnode: CycleNode, tonode: CycleNode, forceedge: bool) -> None:
        if self._reachable(fromnode, tonode) and not forceedge:
            return
        # Follow the RMW chain so the edge leaves its last member.
        while fromnode.rmw is not None:
            if fromnode.rmw is tonode:
                break
            fromnode = fromnode.rmw
        fromnode.add_edge(tonode)

        if tonode.cv.merge(fromnode.cv):
            pending = [tonode]
            while pending:
                node = pending.pop()
                for enode in node.edges:
                    if enode.cv.merge(node.cv):
                        pending.append(enode)

    def add_edge(self, src: ModelAction, to: ModelAction, forceedge: bool = False) -> None:
        """Order ``to`` after ``src``."""
        if src is None or to is None:
            raise ValueError("both actions must be given")
        self._add_node_edge(self._get_node(src), self._get_node(to), forceedge)

    def add_edges(self, edgeset: List[ModelAction], to: ModelAction) -> None:
        """Order ``to`` after each action in ``edgeset``.

        Actions already ordered before another member of ``edgeset`` are dropped
        from the list first.
        """
        remaining = list(edgeset)
        kept: List[ModelAction] = []
        while remaining:
            act = remaining.pop(0)
            node = self._get_node(act)
            rest: List[ModelAction] = []
            dominated = False
            for position, other in enumerate(remaining):
                other_node = self._get_node(other)
                if self._reachable(node, other_node):
                    dominated = True
                    rest.extend(remaining[position:])
                    break
                if not self._reachable(other_node, node):
                    rest.append(other)
            remaining = rest
            if not dominated:
                kept.append(act)
        edgeset[:] = kept
        for src in kept:
            self.add_edge(src, to, src.tid == to.tid)

    def add_rmw_edge(self, src: ModelAction, rmw: ModelAction) -> None:
        """Add the edge from a store to the RMW that reads from it."""
        if src is None or rmw is None:
            raise ValueError("both actions must be given")
        fromnode = self._get_node(src)
        rmwnode = self._get_node(rmw)
        if rmwnode.rmw is not None:
            raise ValueError("an RMW already reads from this RMW")
        fromnode.set_rmw(rmwnode)

        for tonode in fromnode.edges:
            if tonode is not rmwnode:
                rmwnode.add_edge(tonode)
            tonode.remove_in_edge(fromnode)
        fromnode.edges.clear()

        self._add_node_edge(fromnode, rmwnode, True)

    def check_reachable(self, src: ModelAction, to: ModelAction) -> bool:
        """True if ``src`` is ordered before ``to`` in the graph."""
        fromnode = self._nodes.get(src)
        tonode = self._nodes.get(to)
        if fromnode is None or tonode is None:
            return False
        return self._reachable(fromnode, tonode)

    def free_action(self, act: ModelAction) -> None:
        """Remove the node for ``act`` and every edge touching it."""
        node = self._nodes.pop(act, None)
        if node is None:
            raise KeyError(act)
        for dst in node.edges:
            dst.remove_in_edge(node)
        for src in node.inedges:
            src.remove_edge(node)

    @staticmethod
    def _node_name(node: CycleNode, label: bool) -> str:
        idx = node.action.seq_number
        if label:
            return f'N{idx} [label="N{idx}, T{node.action.tid}"]'
        return f"N{idx}"

    def _edge_line(self, src: CycleNode, dst: CycleNode, prop: Optional[str]) -> str:
        line = f"{self._node_name(src, False)} -> {self._node_name(dst, False)}"
        if prop:
            line += f" [{prop}]"
        return line + ";\n"

    def dump_nodes(self, file: TextIO) -> None:
        """Write the nodes and edges in dot syntax."""
        for node in self._nodes.values():
            file.write(self._node_name(node, True) + ";\n")
            if node.rmw is not None:
                file.write(self._edge_line(node, node.rmw, "style=dotted"))
            for dst in node.edges:
                file.write(self._edge_line(node, dst, None))

    def dump_graph_to_file(self, filename: str) -> None:
        """Write the graph as a dot digraph to ``<filename>.dot``."""
        with open(f"{filename}.dot", "w", encoding="utf-8") as file:
            file.write(f"digraph {filename} {{\n")
            self.dump_nodes(file)
            file.write("}\n")