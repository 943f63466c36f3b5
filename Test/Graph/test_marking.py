import unittest

import numpy as np

from petrikit.Graph.marking import Marking, MarkingGraphEdge
from petrikit.Net.core import Transition


class TestMarking(unittest.TestCase):
    def test_value_equality(self):
        a, b = Marking([1, 0, 2]), Marking((1, 0, 2))
        a.marking_id = 3
        self.assertEqual(a, b)
        self.assertEqual(hash(a), hash(b))
        self.assertNotEqual(a, Marking([1, 0, 1]))
        self.assertEqual(len({a, b}), 1)

    def test_negative_entry(self):
        with self.assertRaises(ValueError):
            Marking([0, -1])

    def test_text_forms(self):
        m = Marking([1, 0, 2])
        self.assertEqual(str(m), "(1|0|2)")
        self.assertEqual(repr(m), "Marking[?](1|0|2)")
        m.marking_id = 4
        self.assertEqual(repr(m), "Marking[4](1|0|2)")

    def test_sequence_access(self):
        m = Marking([3, 1])
        self.assertEqual(len(m), 2)
        self.assertEqual(list(m), [3, 1])
        self.assertEqual(m[0], 3)
        np.testing.assert_array_equal(m.as_array(), np.array([3, 1]))

    def test_domination(self):
        m = Marking([1, 0])
        self.assertTrue(m.is_dominated_by(Marking([1, 1])))
        self.assertTrue(m.is_dominated_by(Marking([2, 0])))
        self.assertFalse(m.is_dominated_by(Marking([1, 0])))
        # more tokens overall, but fewer in p0
        self.assertFalse(m.is_dominated_by(Marking([0, 5])))
        self.assertTrue(Marking([1, 1]).covers(m))
        self.assertFalse(m.covers(Marking([1, 1])))


class TestMarkingGraphEdge(unittest.TestCase):
    def setUp(self):
        self.t1 = Transition("t1")
        self.src = Marking([1, 0])
        self.src.marking_id = 0
        self.dst = Marking([0, 1])
        self.dst.marking_id = 1

    def test_add_edge_once_per_transition(self):
        edge = MarkingGraphEdge(self.t1, self.src, self.dst)
        self.assertTrue(self.src.add_edge(edge))
        self.assertFalse(self.src.add_edge(MarkingGraphEdge(self.t1, self.src, self.src)))
        self.assertEqual(self.src.out_degree, 1)
        self.assertIs(self.src.edges[0].target, self.dst)
        self.assertTrue(self.src.has_edge(edge))

    def test_add_edge_wrong_source(self):
        with self.assertRaises(ValueError):
            self.dst.add_edge(MarkingGraphEdge(self.t1, self.src, self.dst))

    def test_edge_equality_ignores_target(self):
        a = MarkingGraphEdge(self.t1, self.src, self.dst)
        b = MarkingGraphEdge(self.t1, self.src, self.src)
        self.assertEqual(a, b)
        self.assertEqual(hash(a), hash(b))
        self.assertNotEqual(a, MarkingGraphEdge(Transition("t2"), self.src, self.dst))

    def test_edge_id(self):
        edge = MarkingGraphEdge(self.t1, self.src, self.dst)
        self.assertEqual(edge.edge_id, "0:t1:1")
        self.assertFalse(edge.is_empty)

    def test_empty_edge(self):
        empty = MarkingGraphEdge.empty()
        self.assertTrue(empty.is_empty)
        self.assertIsNone(empty.edge_id)
        self.assertEqual(empty, MarkingGraphEdge.empty())
        self.assertEqual(repr(empty), "MarkingGraphEdge(<empty>)")

    def test_clear_edges(self):
        self.src.add_edge(MarkingGraphEdge(self.t1, self.src, self.dst))
        self.src.clear_edges()
        self.assertEqual(self.src.edges, [])


if __name__ == "__main__":
    unittest.main()
