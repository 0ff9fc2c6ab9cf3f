"""
regionviz.graph_writer
======================

Generic, callback-driven Graphviz DOT writer.

The writer knows nothing about regions.  It walks a graph through a
*traits* object that supplies the node set, the successors of each node,
node labels and edge attributes, and finally gets a chance to append
custom statements (clusters, palette selection, ...) before the closing
brace.

Public API
----------
    DefaultGraphTraits  - traits base class with neutral defaults
    GraphWriter         - serializes a graph through its traits
    escape_string       - DOT label escaping
    write_graph         - convenience wrapper returning the document text

Output layout::

    digraph "Title" {
    	label="Title";

    	Node0 [shape=record,label="{entry}"];
    	Node0 -> Node1;
    	...
    }
"""

from __future__ import annotations

import io
import logging
from typing import (
    Any,
    Iterable,
    List,
    Optional,
    TextIO,
)

_log = logging.getLogger(__name__)

# Characters that must be backslash-escaped inside a record label.
_RECORD_SPECIALS = frozenset('{}<>|"')


def escape_string(label: str) -> str:
    """Escape *label* for use inside a quoted DOT record label.

    Newlines become ``\\n``, tabs become two spaces, record delimiters and
    quotes are backslash-escaped.  An existing ``\\l`` (left-justified line
    break) is kept, and a backslash already escaping ``|``, ``{`` or ``}``
    is dropped so the character is escaped exactly once.
    """
    out: List[str] = []
    i = 0
    n = len(label)
    while i < n:
        c = label[i]
        if c == "\n":
            out.append("\\n")
        elif c == "\t":
            out.append("  ")
        elif c == "\\" and i + 1 < n and label[i + 1] == "l":
            out.append("\\l")
            i += 1
        elif c == "\\" and i + 1 < n and label[i + 1] in "|{}":
            pass
        elif c == "\\" or c in _RECORD_SPECIALS:
            out.append("\\" + c)
        else:
            out.append(c)
        i += 1
    return "".join(out)


# ---------------------------------------------------------------------------
# Traits
# ---------------------------------------------------------------------------

class DefaultGraphTraits:
    """Neutral traits; subclasses override what they need.

    Attributes
    ----------
    simple : bool
        Ask for compact node labels.
    """

    def __init__(self, simple: bool = False) -> None:
        self.simple = simple

    def is_simple(self) -> bool:
        return self.simple

    def graph_name(self, graph: Any) -> str:
        return ""

    def graph_properties(self, graph: Any) -> str:
        return ""

    def nodes(self, graph: Any) -> Iterable[Any]:
        raise NotImplementedError

    def children(self, graph: Any, node: Any) -> Iterable[Any]:
        raise NotImplementedError

    def node_id(self, graph: Any, node: Any) -> str:
        raise NotImplementedError

    def is_node_hidden(self, node: Any) -> bool:
        return False

    def node_label(self, node: Any, graph: Any) -> str:
        return ""

    def node_attributes(self, node: Any, graph: Any) -> str:
        return ""

    def edge_attributes(self, src: Any, dst: Any, graph: Any) -> str:
        return ""

    def add_custom_graph_features(self, graph: Any, writer: "GraphWriter") -> None:
        pass


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------

class GraphWriter:
    """Serialize *graph* to *out* as a DOT digraph, driven by *traits*."""

    def __init__(self, out: TextIO, graph: Any, traits: DefaultGraphTraits) -> None:
        self.out = out
        self.graph = graph
        self.traits = traits
        self.node_count = 0
        self.edge_count = 0

    def indent(self, width: int) -> TextIO:
        """Write *width* spaces and return the stream for chaining."""
        self.out.write(" " * width)
        return self.out

    # ----- document sections -------------------------------------------------

    def write_graph(self, title: str = "") -> None:
        self.write_header(title)
        self.write_nodes()
        self.traits.add_custom_graph_features(self.graph, self)
        self.write_footer()
        _log.debug(
            "wrote %d nodes and %d edges", self.node_count, self.edge_count,
        )

    def write_header(self, title: str = "") -> None:
        name = self.traits.graph_name(self.graph)
        heading = title or name
        if heading:
            self.out.write(f'digraph "{escape_string(heading)}" {{\n')
            self.out.write(f'\tlabel="{escape_string(heading)}";\n')
        else:
            self.out.write("digraph unnamed {\n")
        self.out.write(self.traits.graph_properties(self.graph))
        self.out.write("\n")

    def write_nodes(self) -> None:
        for node in self.traits.nodes(self.graph):
            if not self.traits.is_node_hidden(node):
                self.write_node(node)

    def write_node(self, node: Any) -> None:
        traits = self.traits
        node_id = traits.node_id(self.graph, node)
        attrs = traits.node_attributes(node, self.graph)
        label = escape_string(traits.node_label(node, self.graph))

        self.out.write(f"\t{node_id} [shape=record,")
        if attrs:
            self.out.write(attrs + ",")
        self.out.write(f'label="{{{label}}}"];\n')
        self.node_count += 1

        for child in traits.children(self.graph, node):
            if traits.is_node_hidden(child):
                continue
            self.emit_edge(node, child)

    def emit_edge(self, src: Any, dst: Any) -> None:
        traits = self.traits
        attrs = traits.edge_attributes(src, dst, self.graph)
        self.out.write(
            f"\t{traits.node_id(self.graph, src)} -> "
            f"{traits.node_id(self.graph, dst)}"
        )
        if attrs:
            self.out.write(f"[{attrs}]")
        self.out.write(";\n")
        self.edge_count += 1

    def write_footer(self) -> None:
        self.out.write("}\n")


def write_graph(
    graph: Any,
    traits: DefaultGraphTraits,
    title: str = "",
    out: Optional[TextIO] = None,
) -> str:
    """Write *graph* and return the document text.

    When *out* is given the document is written there as well.
    """
    buf = io.StringIO()
    GraphWriter(buf, graph, traits).write_graph(title)
    text = buf.getvalue()
    if out is not None:
        out.write(text)
    return text
