"""
regionviz.region_printer
========================

Render the region tree of a function as nested Graphviz clusters.

Every basic block becomes one record node and every CFG edge one DOT
edge.  After the node/edge pass the region tree is appended as nested
``subgraph cluster_*`` blocks; each block is listed inside the cluster of
the innermost region that owns it, so the renderer draws regions as
nested coloured boxes around their blocks.

Public API
----------
    block_simple_label      - identifier-only block label
    block_complete_label    - block label with its instructions
    node_label              - label for a RegionNode
    edge_attributes         - ``constraint=false`` for back edges into a region
    cluster_style           - (style, colour) of a region cluster
    print_region_cluster    - emit one region and its sub-regions
    add_custom_graph_features - palette directive plus the cluster tree
    RegionGraphTraits       - binds the above to :class:`GraphWriter`

Back edges
----------
Graphviz ranks nodes top to bottom along edges.  A loop back edge
``latch -> header`` would pull the header below its own body, so edges
that enter a region through its entry from inside that same region are
marked ``constraint=false``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from .ctrlflow_graph import BasicBlock, Function
from .graph_writer import DefaultGraphTraits, GraphWriter
from .region_info import (
    BlockNode,
    Region,
    RegionInfo,
    RegionNode,
    SubRegionNode,
)

# Graphviz "paired12" colour scheme: 6 light/dark pairs.
COLOR_SCHEME = "paired12"
PALETTE_SIZE = 12

NOT_IMPLEMENTED_LABEL = "Not implemented"
NON_CONSTRAINING = "constraint=false"


# ---------------------------------------------------------------------------
# Node labels
# ---------------------------------------------------------------------------

def block_simple_label(block: BasicBlock) -> str:
    return block.display_name()


def block_complete_label(block: BasicBlock) -> str:
    """Block name followed by its instructions, one left-justified line each."""
    lines = [f"{block.display_name()}:"]
    lines.extend(f"  {insn}" for insn in block.instructions)
    return "".join(line + "\\l" for line in lines)


def node_label(node: RegionNode, function: Optional[Function], simple: bool) -> str:
    """Return the label of *node*.

    Collapsed sub-regions are drawn as clusters and never reach this
    function from the base graph; they get a fixed placeholder.
    """
    if isinstance(node, BlockNode):
        if simple:
            return block_simple_label(node.block)
        return block_complete_label(node.block)
    return NOT_IMPLEMENTED_LABEL


# ---------------------------------------------------------------------------
# Edge classification
# ---------------------------------------------------------------------------

def edge_attributes(src: RegionNode, dst: RegionNode, region_info: RegionInfo) -> str:
    """Return ``constraint=false`` for an edge back into an open region.

    Climbs from the innermost region of the destination block while the
    parent region is entered through that same block, stopping at the
    first parent with a different entry.  If the region reached is
    entered at the destination and already contains the source, the edge
    is a back edge and must not shape the layout.
    """
    if isinstance(src, SubRegionNode) or isinstance(dst, SubRegionNode):
        return ""

    src_bb = src.block
    dst_bb = dst.block

    region = region_info.region_for(dst_bb)
    if region is None:
        return ""

    while region.parent is not None:
        if region.parent.entry is dst_bb:
            region = region.parent
        else:
            break

    if region.entry is dst_bb and region.contains(src_bb):
        return NON_CONSTRAINING
    return ""


# ---------------------------------------------------------------------------
# Clusters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClusterStyle:
    style: str
    color: int


def cluster_style(depth: int, simple: bool, only_simple_regions: bool = False) -> ClusterStyle:
    """Colour and fill of a region cluster.

    Depth picks one of the six palette pairs; the light entry of the pair
    is used for filled clusters and the dark one for the outline of
    non-simple regions when only simple regions are emphasised.
    """
    base = (depth * 2) % PALETTE_SIZE
    if not only_simple_regions or simple:
        return ClusterStyle("filled", base + 1)
    return ClusterStyle("solid", base + 2)


def block_node_id(block: BasicBlock) -> str:
    return f"Node{block.id}"


def print_region_cluster(
    region: Region,
    writer: GraphWriter,
    depth: int = 0,
    only_simple_regions: bool = False,
) -> None:
    """Emit *region* as a cluster, sub-regions first, then its own blocks.

    *depth* only controls indentation; the colour follows the region's
    depth in the tree.
    """
    writer.indent(2 * depth).write(f"subgraph cluster_{region.id} {{\n")
    writer.indent(2 * (depth + 1)).write('label = "";\n')

    cs = cluster_style(region.depth, region.is_simple(), only_simple_regions)
    writer.indent(2 * (depth + 1)).write(f"style = {cs.style};\n")
    writer.indent(2 * (depth + 1)).write(f"color = {cs.color}\n")

    for child in region.children:
        print_region_cluster(child, writer, depth + 1, only_simple_regions)

    info = region.region_info
    for bb in region.blocks():
        if info.region_for(bb) is region:
            node = info.bb_node(bb)
            writer.indent(2 * (depth + 1)).write(f"{block_node_id(node.block)};\n")

    writer.indent(2 * depth).write("}\n")


def add_custom_graph_features(
    region_info: RegionInfo,
    writer: GraphWriter,
    only_simple_regions: bool = False,
) -> None:
    writer.out.write(f'\tcolorscheme = "{COLOR_SCHEME}"\n')
    print_region_cluster(
        region_info.top_level_region, writer, 4, only_simple_regions,
    )


# ---------------------------------------------------------------------------
# Writer binding
# ---------------------------------------------------------------------------

class RegionGraphTraits(DefaultGraphTraits):
    """Graph traits for a :class:`RegionInfo`.

    Parameters
    ----------
    simple:
        Identifier-only block labels (no function bodies).
    only_simple_regions:
        Fill only simple regions; other regions get an outline.
    """

    def __init__(self, simple: bool = False, only_simple_regions: bool = False) -> None:
        super().__init__(simple)
        self.only_simple_regions = only_simple_regions

    def graph_name(self, graph: RegionInfo) -> str:
        return "Region Graph"

    def nodes(self, graph: RegionInfo) -> Iterable[RegionNode]:
        return graph.nodes()

    def children(self, graph: RegionInfo, node: RegionNode) -> List[RegionNode]:
        return graph.successors(node)

    def node_id(self, graph: RegionInfo, node: Any) -> str:
        if isinstance(node, BlockNode):
            return block_node_id(node.block)
        return f"cluster_{node.region.id}"

    def node_label(self, node: RegionNode, graph: RegionInfo) -> str:
        return node_label(node, graph.function, self.is_simple())

    def edge_attributes(self, src: RegionNode, dst: RegionNode, graph: RegionInfo) -> str:
        return edge_attributes(src, dst, graph)

    def add_custom_graph_features(self, graph: RegionInfo, writer: GraphWriter) -> None:
        add_custom_graph_features(graph, writer, self.only_simple_regions)
