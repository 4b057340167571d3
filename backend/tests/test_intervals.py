"""
Unit tests for the nested-set interval arithmetic.

Tests cover:
- Interval allocation for roots and children
- Gap widening and closing, including the parent's own right bound
- Move planning (offset, depth delta, cycle rejection)
- Whole-tree invariant checking
"""
import pytest

from services_intervals import (
    GapShift,
    Interval,
    allocate_interval,
    closing_gap,
    find_violations,
    insertion_gap,
    plan_move,
)
from tree_errors import CycleError

pytestmark = pytest.mark.unit


class TestAllocateInterval:
    @pytest.mark.parametrize(
        "current_max_right, expected",
        [
            (None, Interval(1, 2, 0)),
            (0, Interval(1, 2, 0)),
            (6, Interval(7, 8, 0)),
        ],
    )
    def test_root(self, current_max_right, expected):
        assert allocate_interval(None, current_max_right) == expected

    @pytest.mark.parametrize(
        "parent, expected",
        [
            (Interval(1, 2, 0), Interval(2, 3, 1)),
            (Interval(1, 6, 0), Interval(6, 7, 1)),
            (Interval(4, 5, 2), Interval(5, 6, 3)),
        ],
    )
    def test_child_takes_parent_right(self, parent, expected):
        assert allocate_interval(parent, 100) == expected


class TestGapShift:
    @pytest.mark.parametrize(
        "bound, expected",
        [
            (1, 1),
            (5, 5),
            # The parent's own right bound (6) moves with everything after it.
            (6, 8),
            (7, 9),
        ],
    )
    def test_insertion_gap_includes_parent_right(self, bound, expected):
        shift = insertion_gap(Interval(1, 6, 0))
        assert shift == GapShift(at=6, delta=2)
        assert shift.apply(bound) == expected

    def test_insertion_then_allocate_nests_inside_parent(self):
        parent = Interval(1, 6, 0)
        child = allocate_interval(parent, None)
        widened = insertion_gap(parent).apply_interval(parent)
        assert widened == Interval(1, 8, 0)
        assert widened.strictly_contains(child)

    @pytest.mark.parametrize(
        "bound, expected",
        [
            (3, 3),
            (5, 5),
            (6, 4),
            (10, 8),
        ],
    )
    def test_closing_gap_moves_bounds_after_removed_interval(self, bound, expected):
        shift = closing_gap(Interval(4, 5, 1))
        assert shift == GapShift(at=6, delta=-2)
        assert shift.apply(bound) == expected

    def test_width_counts_whole_subtree(self):
        assert Interval(2, 9).width == 8


class TestPlanMove:
    """R[1,6] with children C1[2,3] and C2[4,5]."""

    R = Interval(1, 6, 0)
    C1 = Interval(2, 3, 1)
    C2 = Interval(4, 5, 1)

    def test_move_sibling_under_sibling(self):
        plan = plan_move(self.C2, self.C1)

        assert plan.close == GapShift(at=6, delta=-2)
        assert plan.open == GapShift(at=3, delta=2)
        assert plan.new_left == 3
        assert plan.depth_delta == 1
        assert plan.relocate(self.C2) == Interval(3, 4, 2)

        # Rest of the tree: close then open.
        def rest(interval):
            return plan.open.apply_interval(plan.close.apply_interval(interval))

        assert rest(self.R) == Interval(1, 6, 0)
        assert rest(self.C1) == Interval(2, 5, 1)

    def test_move_to_root_lands_after_max_right(self):
        plan = plan_move(self.C1, None, max_right_outside=6)

        assert plan.open is None
        assert plan.new_left == 5
        assert plan.depth_delta == -1
        assert plan.relocate(self.C1) == Interval(5, 6, 0)
        assert plan.close.apply_interval(self.R) == Interval(1, 4, 0)
        assert plan.close.apply_interval(self.C2) == Interval(2, 3, 1)

    def test_move_to_root_of_only_subtree(self):
        plan = plan_move(Interval(3, 8, 2), None, max_right_outside=None)
        assert plan.new_left == 1
        assert plan.offset == -2
        assert plan.depth_delta == -2

    def test_move_to_same_parent_keeps_bounds(self):
        plan = plan_move(self.C2, self.R)
        assert plan.offset == 0
        assert plan.depth_delta == 0

    def test_move_under_itself_is_a_cycle(self):
        with pytest.raises(CycleError) as exc_info:
            plan_move(self.C1, self.C1)
        assert str(exc_info.value) == "Cycle prevented: the new parent is part of the subtree."

    def test_move_under_descendant_is_a_cycle(self):
        with pytest.raises(CycleError):
            plan_move(self.R, self.C2)


class TestFindViolations:
    def test_valid_tree(self):
        nodes = {
            "R": (None, Interval(1, 6, 0)),
            "C1": ("R", Interval(2, 3, 1)),
            "C2": ("R", Interval(4, 5, 1)),
            "S": (None, Interval(7, 8, 0)),
        }
        assert find_violations(nodes) == []

    def test_partial_overlap(self):
        nodes = {
            "A": (None, Interval(1, 4, 0)),
            "B": ("A", Interval(3, 6, 1)),
        }
        problems = find_violations(nodes)
        assert any("partially overlaps" in p for p in problems)

    def test_wrong_depth(self):
        nodes = {
            "R": (None, Interval(1, 4, 0)),
            "C": ("R", Interval(2, 3, 2)),
        }
        problems = find_violations(nodes)
        assert any("depth 2" in p for p in problems)

    def test_duplicate_bound(self):
        nodes = {
            "A": (None, Interval(1, 2, 0)),
            "B": (None, Interval(2, 3, 0)),
        }
        problems = find_violations(nodes)
        assert any("already used" in p for p in problems)

    def test_nested_in_wrong_parent(self):
        nodes = {
            "R": (None, Interval(1, 6, 0)),
            "C1": ("R", Interval(2, 5, 1)),
            "C2": ("R", Interval(3, 4, 1)),
        }
        problems = find_violations(nodes)
        assert any("C2" in p for p in problems)
