import io
import logging
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout

import networkx as nx

from petrikit.cli import build_parser, main

SOURCE = """<pnml><net id="source">
  <place id="p0"><initialMarking><text>1</text></initialMarking></place>
  <place id="p1"/>
  <transition id="t"/>
  <arc source="t" target="p1"/>
</net></pnml>"""

DEADLOCK = """<pnml><net id="deadlock">
  <place id="p1"/><place id="p2"/>
  <transition id="t1"/>
  <arc source="p1" target="t1"/><arc source="t1" target="p2"/>
</net></pnml>"""


class TestCLI(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.source = self._write("source.pnml", SOURCE)
        self.deadlock = self._write("deadlock.pnml", DEADLOCK)

    def tearDown(self):
        logger = logging.getLogger("petrikit")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        self.tmpdir.cleanup()

    def _write(self, name, text):
        path = os.path.join(self.tmpdir.name, name)
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(text)
        return path

    def _run(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_parser_defaults(self):
        args = build_parser().parse_args(["a.pnml"])
        self.assertEqual(args.files, ["a.pnml"])
        self.assertEqual(args.log_level, "WARNING")
        self.assertIsNone(args.max_markings)
        self.assertFalse(args.verbose)

    def test_single_unbounded(self):
        code, out, _ = self._run(self.source)
        self.assertEqual(code, 0)
        self.assertIn("source.pnml: net is unbounded. markings: 2 edges: 1", out)
        self.assertIn("witness: 1:(t); (1|0), (1|1)", out)

    def test_single_bounded(self):
        code, out, _ = self._run(self.deadlock)
        self.assertEqual(code, 0)
        self.assertIn("net is bounded. markings: 1 edges: 0", out)

    def test_unreadable_input(self):
        code, _, err = self._run(os.path.join(self.tmpdir.name, "missing.pnml"))
        self.assertEqual(code, 2)
        self.assertIn("error:", err)

    def test_directory_input(self):
        code, _, err = self._run(self.tmpdir.name)
        self.assertEqual(code, 2)
        self.assertIn("error:", err)

    def test_directory_in_batch(self):
        code, out, _ = self._run(self.source, self.tmpdir.name)
        self.assertEqual(code, 2)
        self.assertIn("source.pnml", out)

    def test_graph_export(self):
        graph_file = os.path.join(self.tmpdir.name, "source.graphml")
        code, _, _ = self._run(self.source, "--graph", graph_file)
        self.assertEqual(code, 0)
        G = nx.read_graphml(graph_file)
        self.assertEqual(G.number_of_nodes(), 2)
        self.assertEqual(G.number_of_edges(), 1)
        self.assertTrue(G.nodes["0"]["initial"])
        self.assertEqual(G.nodes["1"]["label"], "(1|1)")
        edges = list(G.edges(data=True))
        self.assertEqual(edges[0][2]["transition"], "t")
        self.assertTrue(edges[0][2]["on_path"])

    def test_invalid_log_level(self):
        code, _, err = self._run(self.source, "--log-level", "LOUD")
        self.assertEqual(code, 2)
        self.assertIn("Invalid log level", err)

    def test_batch_table(self):
        code, out, _ = self._run(self.source, self.deadlock)
        self.assertEqual(code, 0)
        self.assertIn("source.pnml", out)
        self.assertIn("deadlock.pnml", out)
        self.assertIn("1/0", out)

    def test_max_markings(self):
        code, out, _ = self._run(self.source, "--max-markings", "1")
        self.assertEqual(code, 0)
        self.assertIn("exceeded 1 markings", out)

    def test_verbose_logs_to_file(self):
        log_file = os.path.join(self.tmpdir.name, "run.log")
        code, _, _ = self._run(self.deadlock, "--verbose", "--log-file", log_file)
        self.assertEqual(code, 0)
        for handler in logging.getLogger("petrikit").handlers:
            handler.flush()
        with open(log_file, encoding="utf-8") as fh:
            text = fh.read()
        self.assertIn("boundedness analysis started", text)


if __name__ == "__main__":
    unittest.main()
