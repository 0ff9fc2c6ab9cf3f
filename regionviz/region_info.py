"""
regionviz.region_info
=====================

Region tree model for one function.

A *region* is a single-entry-single-exit part of the CFG.  Regions nest:
the top-level region covers the whole function, and every other region
has exactly one parent.  Each basic block is *owned* by exactly one
region, the innermost one containing it.

This module only models the tree handed over by a region analysis; it
does not discover regions.  The one derived property is
:meth:`Region.is_simple`, used when the analysis did not record it.

Public API
----------
    Region           - a node of the region tree
    RegionInfo       - the region tree of one function plus block lookup
    BlockNode        - graph node wrapping a basic block
    SubRegionNode    - graph node standing for a collapsed sub-region
    RegionNode       - ``Union[BlockNode, SubRegionNode]``
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import (
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
    Union,
)

from .ctrlflow_graph import BasicBlock, Function
from .errors import RegionTreeError

_log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Graph nodes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BlockNode:
    """A leaf of the rendered graph: one basic block."""

    block: BasicBlock


@dataclass(frozen=True)
class SubRegionNode:
    """A collapsed sub-region.  Drawn as a cluster, never as a node."""

    region: "Region"


RegionNode = Union[BlockNode, SubRegionNode]


# ---------------------------------------------------------------------------
# Region
# ---------------------------------------------------------------------------

class Region:
    """A node of the region tree.

    Attributes
    ----------
    entry : BasicBlock
        The single entry block.
    exit : BasicBlock or None
        The block control reaches when leaving the region.  ``None`` for
        the top-level region (the function return).
    parent : Region or None
    children : list[Region]
        Sub-regions, in the order the analysis reported them.
    id : int
        Pre-order number assigned by the owning :class:`RegionInfo`.
    """

    def __init__(
        self,
        entry: BasicBlock,
        exit: Optional[BasicBlock] = None,
        blocks: Sequence[BasicBlock] = (),
        simple: Optional[bool] = None,
    ) -> None:
        self.entry = entry
        self.exit = exit
        self.parent: Optional[Region] = None
        self.children: List[Region] = []
        self.id: int = -1
        self.region_info: Optional[RegionInfo] = None
        self._owned: List[BasicBlock] = list(blocks)
        self._simple = simple

    # ----- construction -----------------------------------------------------

    def add_subregion(self, child: "Region") -> "Region":
        child.parent = self
        self.children.append(child)
        return child

    def add_block(self, block: BasicBlock) -> None:
        self._owned.append(block)

    # ----- queries ----------------------------------------------------------

    @property
    def depth(self) -> int:
        """Nesting depth; the top-level region has depth 0."""
        depth = 0
        r = self.parent
        while r is not None:
            depth += 1
            r = r.parent
        return depth

    def is_top_level(self) -> bool:
        return self.parent is None

    def owned_blocks(self) -> List[BasicBlock]:
        """Blocks whose innermost region is this one."""
        return list(self._owned)

    def contains(self, block: BasicBlock) -> bool:
        """True if *block* is owned by this region or one of its descendants."""
        if self.region_info is None:
            return any(r._owns(block) for r in self.walk())
        r = self.region_info.region_for(block)
        while r is not None:
            if r is self:
                return True
            r = r.parent
        return False

    def contains_region(self, other: "Region") -> bool:
        r: Optional[Region] = other
        while r is not None:
            if r is self:
                return True
            r = r.parent
        return False

    def blocks(self) -> Iterator[BasicBlock]:
        """All blocks in the region, sub-regions included, in function order."""
        for bb in self.entry.parent.blocks:
            if self.contains(bb):
                yield bb

    def walk(self) -> Iterator["Region"]:
        """Pre-order traversal of this region and its descendants."""
        stack = [self]
        while stack:
            r = stack.pop()
            yield r
            stack.extend(reversed(r.children))

    def entering_edges(self) -> int:
        return sum(1 for p in self.entry.predecessor_blocks() if not self.contains(p))

    def exiting_edges(self) -> int:
        if self.exit is None:
            return 0
        return sum(1 for p in self.exit.predecessor_blocks() if self.contains(p))

    def is_simple(self) -> bool:
        """True if the region has one entering and one exiting edge.

        An explicit classification given at construction time wins.  The
        top-level region is never simple.
        """
        if self._simple is not None:
            return self._simple
        if self.is_top_level() or self.exit is None:
            return False
        return self.entering_edges() == 1 and self.exiting_edges() == 1

    def name(self) -> str:
        exit_name = (
            self.exit.display_name() if self.exit is not None
            else "<Function Return>"
        )
        return f"{self.entry.display_name()} => {exit_name}"

    def _owns(self, block: BasicBlock) -> bool:
        return any(b is block for b in self._owned)

    def __repr__(self) -> str:
        return (
            f"Region(id={self.id}, {self.name()!r}, depth={self.depth}, "
            f"owned={len(self._owned)}, children={len(self.children)})"
        )


# ---------------------------------------------------------------------------
# RegionInfo
# ---------------------------------------------------------------------------

class RegionInfo:
    """The region tree of one function.

    Parameters
    ----------
    function:
        The CFG the tree was computed for.
    top_level_region:
        Root of the tree; must cover every block of *function*.
    verify:
        Check the block partition on construction (default).
    """

    def __init__(
        self,
        function: Function,
        top_level_region: Region,
        verify: bool = True,
    ) -> None:
        self.function = function
        self.top_level_region = top_level_region
        self._region_for: Dict[int, Region] = {}
        self._duplicates: List[BasicBlock] = []
        self._index()
        if verify:
            self.verify()

    def _index(self) -> None:
        for n, region in enumerate(self.top_level_region.walk()):
            region.id = n
            region.region_info = self
            for bb in region.owned_blocks():
                if bb.id in self._region_for:
                    self._duplicates.append(bb)
                    continue
                self._region_for[bb.id] = region
        _log.debug(
            "indexed %d regions over %d blocks of %s",
            len(self.regions()), len(self._region_for), self.function.name,
        )

    # ----- queries ----------------------------------------------------------

    def region_for(self, block: BasicBlock) -> Optional[Region]:
        """Innermost region containing *block*."""
        return self._region_for.get(block.id)

    def regions(self) -> List[Region]:
        """All regions in pre-order."""
        return list(self.top_level_region.walk())

    def bb_node(self, block: BasicBlock) -> BlockNode:
        """The base-graph node standing for *block*."""
        return BlockNode(block)

    def nodes(self) -> List[BlockNode]:
        """Every block of the function as a graph node, in block order."""
        return [self.bb_node(bb) for bb in self.function.blocks]

    def successors(self, node: RegionNode) -> List[RegionNode]:
        if isinstance(node, BlockNode):
            return [self.bb_node(bb) for bb in node.block.successor_blocks()]
        return []

    # ----- validation -------------------------------------------------------

    def verify(self) -> None:
        """Raise :class:`RegionTreeError` unless ownership partitions the blocks."""
        fname = self.function.name
        if self._duplicates:
            names = ", ".join(bb.display_name() for bb in self._duplicates)
            raise RegionTreeError(
                f"blocks owned by more than one region: {names}",
                function=fname,
            )
        for region in self.top_level_region.walk():
            for bb in region.owned_blocks():
                if bb.parent is not self.function:
                    raise RegionTreeError(
                        f"block {bb.display_name()} does not belong to this function",
                        function=fname,
                    )
        missing = [
            bb for bb in self.function.blocks if bb.id not in self._region_for
        ]
        if missing:
            names = ", ".join(bb.display_name() for bb in missing)
            raise RegionTreeError(
                f"blocks not owned by any region: {names}", function=fname,
            )
        for region in self.top_level_region.walk():
            if not region.contains(region.entry):
                raise RegionTreeError(
                    f"region {region.name()} does not contain its entry block",
                    function=fname,
                )

    def __repr__(self) -> str:
        return (
            f"RegionInfo(function={self.function.name!r}, "
            f"regions={len(self.regions())})"
        )
