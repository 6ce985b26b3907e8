"""Tests for chain traversal."""

import pytest

from backoffice.core.approval import ChainNavigator

from tests.factories import make_template


pytestmark = pytest.mark.db


@pytest.fixture
def navigator():
    return ChainNavigator()


@pytest.fixture
def long_chain(build_chain):
    templates = [make_template(level=n, approver_id=f"L{n}") for n in range(1, 5)]
    return build_chain(context={}, templates=templates)


class TestNext:

    def test_next_follows_levels(self, navigator, long_chain):
        root, l1, l2, l3, l4 = long_chain
        assert navigator.next(root) is l1
        assert navigator.next(l1) is l2
        assert navigator.next(l3) is l4

    def test_next_of_tail_is_none(self, navigator, long_chain):
        assert navigator.next(long_chain[-1]) is None


class TestTraversal:

    def test_full_chain_from_root(self, navigator, long_chain):
        assert navigator.full_chain(long_chain[0]) == long_chain

    def test_full_chain_from_middle(self, navigator, long_chain):
        assert navigator.full_chain(long_chain[2]) == long_chain[2:]

    def test_downstream_excludes_step(self, navigator, long_chain):
        assert navigator.downstream_of(long_chain[1]) == long_chain[2:]
        assert navigator.downstream_of(long_chain[0]) == long_chain[1:]

    def test_downstream_of_tail_is_empty(self, navigator, long_chain):
        assert navigator.downstream_of(long_chain[-1]) == []

    def test_iter_chain_is_restartable(self, navigator, long_chain):
        first = [s.assignee_id for s in navigator.iter_chain(long_chain[0])]
        second = [s.assignee_id for s in navigator.iter_chain(long_chain[0])]
        assert first == second == ["U0", "L1", "L2", "L3", "L4"]

    def test_tail(self, navigator, long_chain):
        assert navigator.tail(long_chain[0]) is long_chain[-1]
        assert navigator.tail(long_chain[-1]) is long_chain[-1]

    def test_tail_of_bare_chain_is_root(self, navigator, build_chain):
        templates = [make_template(level=1, approver_id="A", context_filter={"dept": "x"})]
        (root,) = build_chain(context={"dept": "y"}, templates=templates)
        assert navigator.tail(root) is root


class TestLinks:

    def test_each_step_has_at_most_one_link_each_way(self, navigator, long_chain):
        root = long_chain[0]
        assert navigator.incoming_link(root) is None
        for previous, step in zip(long_chain, long_chain[1:]):
            link = navigator.incoming_link(step)
            assert link.from_step is previous
            assert link.to_step is step
            assert previous.outgoing_link is link
        assert long_chain[-1].outgoing_link is None
