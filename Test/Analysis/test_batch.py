import os
import tempfile
import unittest
from concurrent.futures import ThreadPoolExecutor

import pandas as pd

from petrikit.Analysis.batch import COLUMNS, BatchAnalyzer, PathCollector, format_report
from petrikit.Net.events import ModelAction, ModelEvent
from petrikit.Net.petrinet import PetriNet

CYCLE = """<pnml><net id="cycle">
  <place id="p1"><initialMarking><text>1</text></initialMarking></place>
  <place id="p2"/>
  <transition id="t1"/><transition id="t2"/>
  <arc source="p1" target="t1"/><arc source="t1" target="p2"/>
  <arc source="p2" target="t2"/><arc source="t2" target="p1"/>
</net></pnml>"""

LEAD_IN = """<pnml><net id="lead_in">
  <place id="p0"><initialMarking><text>1</text></initialMarking></place>
  <place id="p1"/><place id="p2"/>
  <transition id="t0"/><transition id="t1"/>
  <arc source="p0" target="t0"/><arc source="t0" target="p1"/>
  <arc source="p1" target="t1"/><arc source="t1" target="p1"/>
  <arc source="t1" target="p2"/>
</net></pnml>"""


class TestBatchAnalyzer(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.paths = []
        for name, text in [
            ("cycle.pnml", CYCLE),
            ("lead_in.pnml", LEAD_IN),
            ("broken.pnml", "<pnml><net>"),
        ]:
            path = os.path.join(self.tmpdir.name, name)
            with open(path, "w", encoding="utf-8") as fh:
                fh.write(text)
            self.paths.append(path)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_run_report_rows(self):
        df = BatchAnalyzer().run(self.paths[:2])
        self.assertIsInstance(df, pd.DataFrame)
        self.assertEqual(list(df.columns), COLUMNS)
        self.assertEqual(list(df["file"]), ["cycle.pnml", "lead_in.pnml"])

        bounded = df.iloc[0]
        self.assertTrue(bounded["bounded"])
        self.assertEqual(bounded["n_markings"], 2)
        self.assertEqual(bounded["n_edges"], 2)

        unbounded = df.iloc[1]
        self.assertFalse(unbounded["bounded"])
        self.assertEqual(unbounded["n_markings"], 3)
        self.assertEqual(unbounded["path_length"], 2)
        self.assertEqual(unbounded["path"], "t0,t1")
        self.assertEqual(unbounded["first"], "(0|1|0)")
        self.assertEqual(unbounded["second"], "(0|1|1)")

    def test_unreadable_file_is_skipped(self):
        with self.assertLogs("petrikit.Analysis.batch", level="ERROR"):
            df = BatchAnalyzer().run(self.paths)
        self.assertEqual(len(df), 2)
        self.assertNotIn("broken.pnml", list(df["file"]))

    def test_directory_is_skipped(self):
        with self.assertLogs("petrikit.Analysis.batch", level="ERROR"):
            df = BatchAnalyzer().run([self.tmpdir.name, self.paths[0]])
        self.assertEqual(list(df["file"]), ["cycle.pnml"])

    def test_max_markings_skips_file(self):
        with self.assertLogs("petrikit.Analysis.batch", level="ERROR"):
            df = BatchAnalyzer(max_markings=1).run(self.paths[:1])
        self.assertTrue(df.empty)
        self.assertEqual(list(df.columns), COLUMNS)

    def test_custom_loader(self):
        def loader(path):
            return PetriNet.from_arcs({"p": 1}, ["t"], [("p", "t")], name=str(path))

        df = BatchAnalyzer(loader=loader).run(["a", "b"])
        self.assertEqual(list(df["bounded"]), [True, True])
        self.assertEqual(list(df["n_markings"]), [2, 2])

    def test_run_async(self):
        future = BatchAnalyzer().run_async(self.paths[:2])
        df = future.result(timeout=30)
        self.assertEqual(len(df), 2)

        with ThreadPoolExecutor(max_workers=1) as pool:
            df = BatchAnalyzer().run_async(iter(self.paths[:1]), executor=pool).result()
        self.assertEqual(list(df["file"]), ["cycle.pnml"])

    def test_format_report(self):
        df = BatchAnalyzer().run(self.paths[:2])
        text = format_report(df)
        lines = text.splitlines()
        self.assertEqual(len(lines), 4)
        self.assertTrue(lines[0].startswith("file"))
        self.assertIn("cycle.pnml", lines[2])
        self.assertIn("2/2", lines[2])
        self.assertIn("2:(t0,t1); (0|1|0), (0|1|1)", lines[3])
        # columns line up
        self.assertEqual(lines[2].index("|"), lines[3].index("|"))


class TestPathCollector(unittest.TestCase):
    def test_collects_witness(self):
        collector = PathCollector()
        collector(ModelEvent(ModelAction.PATH_EDGE, "e1"))
        collector(ModelEvent(ModelAction.PATH_EDGE, "e2"))
        collector(ModelEvent(ModelAction.WITNESS_SECOND, "m2"))
        collector(ModelEvent(ModelAction.WITNESS_FIRST, "m1"))
        collector(ModelEvent(ModelAction.PRINT_LINE, "ignored"))
        self.assertEqual(collector.path, ["e1", "e2"])
        self.assertEqual((collector.first, collector.second), ("m1", "m2"))
        collector.clear()
        self.assertEqual(collector.path, [])
        self.assertIsNone(collector.first)


if __name__ == "__main__":
    unittest.main()
