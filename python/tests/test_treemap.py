#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
test_treemap.py
---------------

Exercises the TreeMap engine with tests covering:

* insertion with count merging, lookup and deletion
* ordered traversal, min / max, successor / predecessor
* strict neighbour queries and pruned range sums
* rotation primitives
* bulk loading of presorted data and its initial colouring
* randomised insert/delete compared against a plain dict
* validation of red‑black invariants after each operation
"""

import random
import unittest

from treemap import BLACK, RED, InputError, TreeMap


def _tree_of(keys):
    tree = TreeMap()
    for k in keys:
        tree.insert(k, k * 10 + 1)
    return tree


class TestTreeMap(unittest.TestCase):
    # ------------------------------------------------------------------
    #  Insert / search / delete
    # ------------------------------------------------------------------
    def test_insert_and_search(self):
        tree = _tree_of([10, 5, 20])
        self.assertEqual(tree.search(10).count, 101)
        self.assertEqual(tree.search(5).count, 51)
        self.assertEqual(tree.search(20).count, 201)
        self.assertIsNone(tree.search(7))
        self.assertEqual(len(tree), 3)
        tree.validate()

    def test_insert_into_empty_tree_gives_black_root(self):
        tree = TreeMap()
        node = tree.insert(5, 10)
        self.assertEqual(node.count, 10)
        self.assertEqual(list(tree.dump()), [(5, BLACK, None)])
        tree.validate()

    def test_duplicate_key_merges_count(self):
        tree = TreeMap()
        first = tree.insert(1, 3)
        second = tree.insert(1, 4)
        self.assertIs(first, second)
        self.assertEqual(tree.search(1).count, 7)
        self.assertEqual(len(tree), 1)

    def test_delete(self):
        tree = _tree_of(range(5))
        self.assertTrue(tree.delete(2))
        self.assertNotIn(2, tree)
        self.assertEqual(len(tree), 4)
        tree.validate()

        # Deleting a missing key is a no‑op, not an error
        self.assertFalse(tree.delete(99))
        self.assertEqual(len(tree), 4)

    def test_delete_node_with_two_children_keeps_counts(self):
        tree = _tree_of([50, 30, 70, 20, 40, 60, 80])
        tree.delete(50)
        self.assertEqual(tree.items(), [(k, k * 10 + 1) for k in [20, 30, 40, 60, 70, 80]])
        tree.validate()

    def test_clear_by_deleting_all(self):
        tree = _tree_of(range(20))
        for i in range(20):
            tree.delete(i)
        self.assertEqual(len(tree), 0)
        self.assertFalse(tree)
        # Even after deleting everything the sentinel is still healthy
        tree.validate()

    def test_clear(self):
        tree = _tree_of(range(30))
        tree.clear()
        self.assertEqual(len(tree), 0)
        self.assertEqual(list(tree), [])
        tree.validate()

        tree.insert(4, 1)
        self.assertEqual(tree.items(), [(4, 1)])
        tree.validate()

    # ------------------------------------------------------------------
    #  Iteration / order
    # ------------------------------------------------------------------
    def test_inorder_iteration(self):
        tree = _tree_of([7, 3, 9, 1])
        self.assertEqual(list(tree), [1, 3, 7, 9])
        self.assertEqual(tree.items(), [(1, 11), (3, 31), (7, 71), (9, 91)])

    def test_min_max(self):
        tree = TreeMap()
        self.assertIsNone(tree.min_node())
        self.assertIsNone(tree.max_node())
        for k in [15, 2, 40, 7, 30]:
            tree.insert(k, 1)
        self.assertEqual(tree.min_node().key, 2)
        self.assertEqual(tree.max_node().key, 40)

    def test_successor_predecessor(self):
        tree = _tree_of([10, 20, 30, 40, 50])
        node = tree.search(20)
        self.assertEqual(tree.successor(node).key, 30)
        self.assertEqual(tree.predecessor(node).key, 10)

        # Edge cases – no successor / predecessor
        self.assertIsNone(tree.successor(tree.search(50)))
        self.assertIsNone(tree.predecessor(tree.search(10)))

    # ------------------------------------------------------------------
    #  Neighbour queries
    # ------------------------------------------------------------------
    def test_next_greater_and_previous_less(self):
        tree = _tree_of([1, 2, 3, 4, 5])
        self.assertEqual(tree.next_greater(3).key, 4)
        self.assertEqual(tree.previous_less(3).key, 2)
        self.assertIsNone(tree.next_greater(5))
        self.assertIsNone(tree.previous_less(1))

    def test_neighbours_of_absent_keys(self):
        tree = _tree_of([10, 20, 30])
        self.assertEqual(tree.next_greater(-100).key, 10)
        self.assertEqual(tree.previous_less(100).key, 30)
        self.assertEqual(tree.next_greater(15).key, 20)
        self.assertEqual(tree.previous_less(15).key, 10)
        self.assertIsNone(tree.next_greater(30))
        self.assertIsNone(tree.next_greater(31))
        self.assertIsNone(tree.previous_less(10))
        self.assertIsNone(tree.previous_less(9))

    def test_neighbours_on_empty_tree(self):
        tree = TreeMap()
        self.assertIsNone(tree.next_greater(0))
        self.assertIsNone(tree.previous_less(0))

    def test_neighbours_against_sorted_keys(self):
        random.seed(7)
        keys = sorted(random.sample(range(0, 2000, 3), 150))
        tree = _tree_of(random.sample(keys, len(keys)))
        for probe in range(-5, 2005):
            greater = [k for k in keys if k > probe]
            less = [k for k in keys if k < probe]
            nxt = tree.next_greater(probe)
            prev = tree.previous_less(probe)
            self.assertEqual(nxt.key if nxt else None, greater[0] if greater else None)
            self.assertEqual(prev.key if prev else None, less[-1] if less else None)

    # ------------------------------------------------------------------
    #  Range sums
    # ------------------------------------------------------------------
    def test_range_sum(self):
        tree = TreeMap()
        tree.build_balanced([(1, 5), (3, 2), (7, 9)])
        self.assertEqual(tree.range_sum(0, 10), 16)
        self.assertEqual(tree.range_sum(3, 3), 2)
        self.assertEqual(tree.range_sum(2, 6), 2)
        self.assertEqual(tree.range_sum(4, 6), 0)
        self.assertEqual(tree.range_sum(1, 7), 16)

    def test_range_sum_rejects_inverted_bounds(self):
        tree = _tree_of([1, 2, 3])
        with self.assertRaises(InputError):
            tree.range_sum(10, 5)
        tree.validate()

    def test_range_sum_matches_brute_force_and_is_monotonic(self):
        random.seed(99)
        tree = TreeMap()
        reference = {}
        for _ in range(300):
            k = random.randint(-200, 200)
            m = random.randint(1, 9)
            tree.insert(k, m)
            reference[k] = reference.get(k, 0) + m
        for low in range(-210, 211, 17):
            previous = 0
            for high in range(low, 211, 5):
                expected = sum(v for k, v in reference.items() if low <= k <= high)
                total = tree.range_sum(low, high)
                self.assertEqual(total, expected)
                self.assertGreaterEqual(total, previous)
                previous = total

    # ------------------------------------------------------------------
    #  Rotations
    # ------------------------------------------------------------------
    def test_rotations_preserve_order(self):
        tree = TreeMap()
        tree.build_balanced([(k, 1) for k in range(1, 8)])
        before = tree.items()
        root = tree.search(4)

        tree._rotate_left(root)
        self.assertEqual(next(iter(tree.levels()))[0][0], 6)
        self.assertEqual(tree.items(), before)

        tree._rotate_right(tree.search(6))
        self.assertEqual(next(iter(tree.levels()))[0][0], 4)
        self.assertEqual(tree.items(), before)
        tree.validate()

    def test_rotation_without_child_raises(self):
        tree = _tree_of([1])
        with self.assertRaises(RuntimeError):
            tree._rotate_left(tree.search(1))
        with self.assertRaises(RuntimeError):
            tree._rotate_right(tree.search(1))

    # ------------------------------------------------------------------
    #  Bulk loading
    # ------------------------------------------------------------------
    def test_build_balanced_fifteen_keys(self):
        tree = TreeMap()
        height = tree.build_balanced([(k, k) for k in range(1, 16)])
        self.assertEqual(height, 3)  # floor(log2(15))
        self.assertEqual(len(tree), 15)
        tree.validate()

    def test_build_balanced_colours_deepest_level_red(self):
        tree = TreeMap()
        self.assertEqual(tree.build_balanced([(k, 1) for k in range(1, 8)]), 2)
        self.assertEqual(
            list(tree.levels()),
            [
                [(4, BLACK, None)],
                [(2, BLACK, 4), (6, BLACK, 4)],
                [(1, RED, 2), (3, RED, 2), (5, RED, 6), (7, RED, 6)],
            ],
        )

    def test_build_balanced_small_inputs(self):
        tree = TreeMap()
        self.assertEqual(tree.build_balanced([]), 0)
        self.assertEqual(len(tree), 0)
        tree.validate()

        tree = TreeMap()
        self.assertEqual(tree.build_balanced([(3, 1)]), 0)
        self.assertEqual(list(tree.dump()), [(3, BLACK, None)])
        tree.validate()

    def test_build_balanced_valid_for_every_size(self):
        for n in range(0, 130):
            tree = TreeMap()
            height = tree.build_balanced([(k * 2, 1) for k in range(n)])
            self.assertEqual(height, max(n.bit_length() - 1, 0))
            self.assertEqual(list(tree), [k * 2 for k in range(n)])
            tree.validate()

    def test_build_balanced_rejects_bad_input(self):
        with self.assertRaises(InputError):
            TreeMap().build_balanced([(3, 1), (1, 1)])
        with self.assertRaises(InputError):
            TreeMap().build_balanced([(1, 1), (1, 2)])
        with self.assertRaises(InputError):
            TreeMap().build_balanced([(1, 1), (2, 0)])

    def test_insert_rejects_non_positive_count(self):
        tree = TreeMap()
        with self.assertRaises(InputError):
            tree.insert(5, -3)
        self.assertEqual(len(tree), 0)

        tree.insert(7, 2)
        for count in (0, -10):
            with self.assertRaises(InputError):
                tree.insert(7, count)
        self.assertEqual(tree.items(), [(7, 2)])
        tree.validate()

    def test_build_balanced_requires_empty_tree(self):
        tree = _tree_of([1])
        with self.assertRaises(RuntimeError):
            tree.build_balanced([(5, 1)])

    def test_mutations_after_bulk_load(self):
        random.seed(2024)
        tree = TreeMap()
        tree.build_balanced([(k, 1) for k in range(0, 400, 4)])
        reference = {k: 1 for k in range(0, 400, 4)}
        for _ in range(2000):
            k = random.randrange(0, 400)
            if random.random() < 0.5:
                tree.insert(k, 2)
                reference[k] = reference.get(k, 0) + 2
            else:
                self.assertEqual(tree.delete(k), k in reference)
                reference.pop(k, None)
            tree.validate()
        self.assertEqual(tree.items(), sorted(reference.items()))

    # ------------------------------------------------------------------
    #  Level order dump
    # ------------------------------------------------------------------
    def test_dump_is_restartable_and_read_only(self):
        tree = _tree_of(range(10))
        first = list(tree.dump())
        second = list(tree.dump())
        self.assertEqual(first, second)
        self.assertEqual(sorted(key for key, _, _ in first), list(range(10)))
        self.assertEqual(sum(1 for _, _, parent in first if parent is None), 1)
        tree.validate()

    def test_dump_of_empty_tree(self):
        self.assertEqual(list(TreeMap().dump()), [])

    # ------------------------------------------------------------------
    #  Randomised stress test vs. Python dict
    # ------------------------------------------------------------------
    def test_random_operations_against_dict(self):
        random.seed(12345)
        tree = TreeMap()
        reference = {}

        for _ in range(4000):
            k = random.randrange(0, 300)
            if random.random() < 0.55:
                m = random.randint(1, 1000)
                tree.insert(k, m)
                reference[k] = reference.get(k, 0) + m
            else:
                self.assertEqual(tree.delete(k), k in reference)
                reference.pop(k, None)

            # After each mutation, validate red‑black invariants
            tree.validate()

        self.assertEqual(len(tree), len(reference))
        self.assertEqual(list(tree), sorted(reference))
        for k, v in reference.items():
            self.assertEqual(tree.search(k).count, v)

    def test_ascending_and_descending_inserts_stay_balanced(self):
        for keys in (range(1024), range(1023, -1, -1)):
            tree = _tree_of(keys)
            tree.validate()
            height = max(len(list(tree.levels())) - 1, 0)
            # a red-black tree never exceeds 2 * log2(n + 1)
            self.assertLessEqual(height, 2 * 10)

    # ------------------------------------------------------------------
    #  Validator catches corruption
    # ------------------------------------------------------------------
    def test_validate_detects_corruption(self):
        tree = _tree_of([10, 5, 15, 2, 7, 12, 20])
        tree.validate()

        tree._root.color = RED
        with self.assertRaises(AssertionError):
            tree.validate()
        tree._root.color = BLACK

        node = tree.search(7)
        node.count = 0
        with self.assertRaises(AssertionError):
            tree.validate()
        node.count = 71

        node.key = 11  # 11 sits in the left subtree of 10
        with self.assertRaises(AssertionError):
            tree.validate()
        node.key = 7
        tree.validate()

    def test_validate_detects_colour_violations(self):
        # 10 is the black root, 5 and 15 are black, the four leaves are red
        tree = _tree_of([10, 5, 15, 2, 7, 12, 20])
        self.assertEqual(tree.search(5).color, BLACK)
        self.assertEqual(tree.search(2).color, RED)

        inner = tree.search(5)
        inner.color = RED  # red node with red children
        with self.assertRaisesRegex(AssertionError, "red .* child"):
            tree.validate()
        inner.color = BLACK
        tree.validate()

        leaf = tree.search(2)
        leaf.color = BLACK  # one extra black node on the paths through 2
        with self.assertRaisesRegex(AssertionError, "Black-height mismatch"):
            tree.validate()
        leaf.color = RED
        tree.validate()


if __name__ == "__main__":
    unittest.main(verbosity=2)
