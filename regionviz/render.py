"""
regionviz.render
================

Rendering entry points: DOT text, ``.dot`` files and the interactive
viewer, each with complete block bodies or with block names only.

The four named passes mirror the usual region printer/viewer pairs::

    dot-regions         write reg.<function>.dot
    dot-regions-only    same, without function bodies
    view-regions        open the region graph in a viewer
    view-regions-only   same, without function bodies (regonly prefix)

Typical usage::

    from regionviz.loader import load_file
    from regionviz.render import RenderConfig, write_regions

    for info in load_file("loop.json"):
        write_regions(info, RenderConfig(only_simple_regions=True))
"""

from __future__ import annotations

import io
import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, TextIO, Union

import graphviz

from .errors import RenderError
from .graph_writer import GraphWriter
from .region_info import RegionInfo
from .region_printer import RegionGraphTraits

_log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RenderConfig:
    """Options for one render.

    Attributes
    ----------
    only_simple_regions:
        Fill only simple regions; other regions are drawn as outlines.
    simple:
        Label blocks by name only (no function bodies).
    name:
        Prefix of output files and of the graph title.
    """

    only_simple_regions: bool = False
    simple: bool = False
    name: str = "reg"

    def traits(self) -> RegionGraphTraits:
        return RegionGraphTraits(
            simple=self.simple,
            only_simple_regions=self.only_simple_regions,
        )

    def title_for(self, info: RegionInfo) -> str:
        return f"{self.name} for '{info.function.name}' function"

    def filename_for(self, info: RegionInfo) -> str:
        return f"{self.name}.{info.function.name}.dot"


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def write_region_graph(
    info: RegionInfo,
    out: TextIO,
    config: Optional[RenderConfig] = None,
    title: str = "",
) -> GraphWriter:
    """Write the region graph of *info* to *out* and return the writer."""
    config = config or RenderConfig()
    writer = GraphWriter(out, info, config.traits())
    writer.write_graph(title)
    _log.debug(
        "%s: %d nodes, %d edges, %d regions",
        info.function.name, writer.node_count, writer.edge_count,
        len(info.regions()),
    )
    return writer


def render_regions(
    info: RegionInfo,
    config: Optional[RenderConfig] = None,
    title: str = "",
) -> str:
    """Return the DOT document for *info*.

    Without a *title* the graph is named ``Region Graph``.
    """
    buf = io.StringIO()
    write_region_graph(info, buf, config, title)
    return buf.getvalue()


def write_regions(
    info: RegionInfo,
    config: Optional[RenderConfig] = None,
    directory: Union[str, Path] = ".",
) -> Path:
    """Write ``<name>.<function>.dot`` into *directory* and return its path."""
    config = config or RenderConfig()
    path = Path(directory) / config.filename_for(info)
    _log.debug("writing %s", path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        write_region_graph(info, fh, config, config.title_for(info))
    return path


def _source(info: RegionInfo, config: RenderConfig, directory: Union[str, Path]) -> graphviz.Source:
    text = render_regions(info, config, config.title_for(info))
    return graphviz.Source(
        text,
        filename=config.filename_for(info),
        directory=str(directory),
    )


def render_image(
    info: RegionInfo,
    config: Optional[RenderConfig] = None,
    fmt: str = "svg",
    directory: Union[str, Path] = ".",
) -> Path:
    """Lay the region graph out with Graphviz and write a *fmt* image.

    The ``.dot`` source is written next to the image and kept.
    """
    config = config or RenderConfig()
    src = _source(info, config, directory)
    try:
        out = src.render(format=fmt, cleanup=False)
    except (graphviz.ExecutableNotFound, graphviz.CalledProcessError) as exc:
        raise RenderError(f"graphviz failed: {exc}", cause=exc) from exc
    _log.info("Rendered '%s'", out)
    return Path(out)


_view_dir: Optional[str] = None


def _view_directory() -> str:
    """Scratch directory shared by every viewer call of this process.

    The viewer opens its file asynchronously, so the directory is left
    in place when the process exits.
    """
    global _view_dir
    if _view_dir is None:
        _view_dir = tempfile.mkdtemp(prefix="regionviz-")
    return _view_dir


def view_regions(
    info: RegionInfo,
    config: Optional[RenderConfig] = None,
    directory: Optional[Union[str, Path]] = None,
) -> None:
    """Render the region graph and open it in the system viewer."""
    config = config or RenderConfig()
    if directory is None:
        directory = _view_directory()
    src = _source(info, config, directory)
    _log.info("Viewing '%s'...", config.filename_for(info))
    try:
        src.view(cleanup=True)
    except (graphviz.ExecutableNotFound, graphviz.CalledProcessError,
            RuntimeError, OSError) as exc:
        raise RenderError(f"cannot display region graph: {exc}", cause=exc) from exc


# ---------------------------------------------------------------------------
# Named passes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RegionPass:
    """One of the four printer/viewer variants.

    *prefix* names the output files and the graph title unless the
    caller picks another one.
    """

    name: str
    description: str
    simple: bool
    view: bool
    prefix: str = "reg"

    def config(
        self,
        only_simple_regions: bool = False,
        prefix: Optional[str] = None,
    ) -> RenderConfig:
        return RenderConfig(
            only_simple_regions=only_simple_regions,
            simple=self.simple,
            name=prefix or self.prefix,
        )

    def run(
        self,
        info: RegionInfo,
        only_simple_regions: bool = False,
        directory: Union[str, Path] = ".",
        prefix: Optional[str] = None,
    ) -> Optional[Path]:
        config = self.config(only_simple_regions, prefix)
        if self.view:
            view_regions(info, config)
            return None
        return write_regions(info, config, directory)


PASSES: Dict[str, RegionPass] = {
    p.name: p
    for p in (
        RegionPass("dot-regions",
                   "Print regions of function to 'dot' file",
                   simple=False, view=False),
        RegionPass("dot-regions-only",
                   "Print regions of function to 'dot' file "
                   "(with no function bodies)",
                   simple=True, view=False),
        RegionPass("view-regions",
                   "View regions of function",
                   simple=False, view=True),
        RegionPass("view-regions-only",
                   "View regions of function (with no function bodies)",
                   simple=True, view=True, prefix="regonly"),
    )
}


def get_pass(name: str) -> RegionPass:
    try:
        return PASSES[name]
    except KeyError:
        raise KeyError(
            f"unknown pass '{name}' (known: {', '.join(sorted(PASSES))})"
        ) from None


def pass_names() -> List[str]:
    return sorted(PASSES)
