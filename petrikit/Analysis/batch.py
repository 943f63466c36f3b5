"""
Batch boundedness analysis over many net files.

Each file is loaded into a fresh :class:`PetriNet` and analysed in turn; the
results are collected into a :class:`pandas.DataFrame` with one row per file.
:func:`format_report` renders that frame as a fixed-width text table.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import pandas as pd

from ..Graph.marking import MarkingGraphEdge
from ..Net.events import ModelAction, ModelEvent
from ..Net.exceptions import ExplorationLimitError, PNMLParseError
from ..Net.petrinet import PetriNet
from .boundedness import BoundednessAnalyzer

PathLike = Union[str, Path]
Loader = Callable[[PathLike], PetriNet]

COLUMNS = [
    "file",
    "bounded",
    "n_markings",
    "n_edges",
    "path_length",
    "path",
    "first",
    "second",
]


class PathCollector:
    """
    Listener accumulating the notifications that describe a witness.

    ``PATH_EDGE`` payloads are appended in arrival order; ``WITNESS_FIRST``
    and ``WITNESS_SECOND`` payloads are stored as the witness pair.
    """

    def __init__(self) -> None:
        self.path: List[MarkingGraphEdge] = []
        self.first = None
        self.second = None

    def __call__(self, event: ModelEvent) -> None:
        if event.action is ModelAction.PATH_EDGE:
            self.path.append(event.payload)
        elif event.action is ModelAction.WITNESS_FIRST:
            self.first = event.payload
        elif event.action is ModelAction.WITNESS_SECOND:
            self.second = event.payload

    def clear(self) -> None:
        self.path = []
        self.first = None
        self.second = None


def _default_loader(path: PathLike) -> PetriNet:
    from ..IO.pnml_parser import load_pnml

    return load_pnml(path)


class BatchAnalyzer:
    """
    Analyse a sequence of net files one after another.

    :param loader: Callable turning a path into a :class:`PetriNet`;
        defaults to the PNML loader.
    :param max_markings: Forwarded to :class:`BoundednessAnalyzer`.
    :param logger: Logger for progress and per-file failures.
    """

    def __init__(
        self,
        *,
        loader: Optional[Loader] = None,
        max_markings: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.loader = loader or _default_loader
        self.max_markings = max_markings
        self.logger = logger or logging.getLogger(__name__)

    def analyze_file(self, path: PathLike) -> Dict[str, Any]:
        """
        Load and analyse one file.

        :param path: Net file.
        :returns: One report row; see :data:`COLUMNS`.
        :raises PNMLParseError: If the file cannot be loaded.
        """
        net = self.loader(path)
        collector = PathCollector()
        net.add_listener(collector)
        try:
            result = BoundednessAnalyzer(
                net, max_markings=self.max_markings, logger=self.logger
            ).analyze()
        finally:
            net.remove_listener(collector)

        row: Dict[str, Any] = {
            "file": Path(path).name,
            "bounded": result.is_bounded,
            "n_markings": result.n_markings,
            "n_edges": result.n_edges,
            "path_length": None,
            "path": None,
            "first": None,
            "second": None,
        }
        if not result.is_bounded:
            row["path_length"] = len(collector.path)
            row["path"] = ",".join(e.transition.id for e in collector.path)
            row["first"] = str(collector.first)
            row["second"] = str(collector.second)
        return row

    def run(self, paths: Iterable[PathLike]) -> pd.DataFrame:
        """
        Analyse every file in ``paths`` in order.

        Files that fail to load or exceed ``max_markings`` are logged and
        skipped.

        :param paths: Net files.
        :returns: Report frame with columns :data:`COLUMNS`.
        """
        rows: List[Dict[str, Any]] = []
        for path in paths:
            self.logger.info("Analysing %s", path)
            try:
                rows.append(self.analyze_file(path))
            except (PNMLParseError, ExplorationLimitError) as exc:
                self.logger.error("Skipping %s: %s", path, exc)
        return pd.DataFrame(rows, columns=COLUMNS)

    def run_async(
        self,
        paths: Iterable[PathLike],
        executor: Optional[Executor] = None,
    ) -> "Future[pd.DataFrame]":
        """
        Run :meth:`run` on a background worker.

        :param paths: Net files.
        :param executor: Executor to submit to; a private single-worker
            :class:`ThreadPoolExecutor` is used (and shut down) otherwise.
        :returns: Future resolving to the report frame.
        """
        paths = list(paths)
        if executor is not None:
            return executor.submit(self.run, paths)
        pool = ThreadPoolExecutor(max_workers=1)
        try:
            return pool.submit(self.run, paths)
        finally:
            pool.shutdown(wait=False)


def _describe(row: pd.Series) -> str:
    if bool(row["bounded"]):
        return f"{int(row['n_markings'])}/{int(row['n_edges'])}"
    return f"{int(row['path_length'])}:({row['path']}); {row['first']}, {row['second']}"


def format_report(df: pd.DataFrame) -> str:
    """
    Render a batch result as a fixed-width table.

    Bounded nets show ``markings/edges``; unbounded nets show the witness as
    ``length:(t1,t2,...); m, m'``.

    :param df: Frame returned by :meth:`BatchAnalyzer.run`.
    :returns: Table text, header included.
    """
    header = ["file", "bounded", "markings/edges or witness"]
    body = [
        [str(row["file"]), "yes" if bool(row["bounded"]) else "no", _describe(row)]
        for _, row in df.iterrows()
    ]
    widths = [
        max([len(header[i])] + [len(r[i]) for r in body]) for i in range(len(header))
    ]

    def fmt(cells: List[str]) -> str:
        return " | ".join(c.ljust(w) for c, w in zip(cells, widths)).rstrip()

    lines = [fmt(header), "-+-".join("-" * w for w in widths)]
    lines.extend(fmt(r) for r in body)
    return "\n".join(lines)
