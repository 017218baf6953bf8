import sys
from itertools import combinations, product

import pytest
from renfa.automata.closure import (
    accepted_words,
    accepts_word,
    delta_ext,
    eclose,
    eclose_dfs,
    path,
    step,
)
from renfa.automata.fsa import EPSILON, NFA, InvalidStateError


def cyclic_nfa():
    #  0 -ε-> 1 -ε-> 2 -ε-> 0
    #  2 -a-> 3 -ε-> 4 -ε-> 4
    #  5 -b-> 0
    return NFA(
        range(6),
        ["a", "b"],
        0,
        [
            (0, EPSILON, 1),
            (1, EPSILON, 2),
            (2, EPSILON, 0),
            (2, "a", 3),
            (3, EPSILON, 4),
            (4, EPSILON, 4),
            (5, "b", 0),
        ],
        [4],
    )


def branching_nfa():
    # Two epsilon routes into the same state, and a cycle back to the root
    return NFA(
        range(1, 7),
        ["x"],
        1,
        [
            (1, EPSILON, 2),
            (1, EPSILON, 3),
            (2, EPSILON, 4),
            (3, EPSILON, 4),
            (4, EPSILON, 1),
            (4, "x", 5),
            (5, EPSILON, 6),
            (6, "x", 1),
        ],
        [6],
    )


def subsets(states):
    states = sorted(states)
    for size in range(len(states) + 1):
        for combo in combinations(states, size):
            yield frozenset(combo)


def words(alphabet, max_length):
    for length in range(max_length + 1):
        yield from product(sorted(alphabet), repeat=length)


def test_closure_of_single_state():
    nfa = cyclic_nfa()
    assert eclose(0, nfa) == {0, 1, 2}
    assert eclose(1, nfa) == {0, 1, 2}
    assert eclose(3, nfa) == {3, 4}
    assert eclose(4, nfa) == {4}


def test_closure_without_epsilon_moves_is_singleton():
    nfa = cyclic_nfa()
    assert eclose(5, nfa) == {5}
    assert eclose_dfs(5, nfa) == {5}


def test_closure_of_state_set():
    nfa = cyclic_nfa()
    assert eclose({0, 3}, nfa) == {0, 1, 2, 3, 4}
    assert eclose(frozenset(), nfa) == frozenset()


def test_closure_returns_frozenset():
    assert isinstance(eclose(0, cyclic_nfa()), frozenset)
    assert isinstance(eclose_dfs(0, cyclic_nfa()), frozenset)


def test_closure_without_transitions():
    nfa = NFA([1, 2, 3], (), 1, (), [3])
    for states in subsets(nfa.states):
        assert eclose(states, nfa) == states
        assert eclose_dfs(states, nfa) == states


@pytest.mark.parametrize("make", [cyclic_nfa, branching_nfa])
def test_closure_properties(make):
    nfa = make()
    for states in subsets(nfa.states):
        closed = eclose(states, nfa)
        assert states <= closed <= nfa.states
        # Closed under epsilon transitions
        for src, label, dest in nfa.transitions:
            if label is EPSILON and src in closed:
                assert dest in closed
        # Idempotent
        assert eclose(closed, nfa) == closed


@pytest.mark.parametrize("make", [cyclic_nfa, branching_nfa])
def test_closure_is_monotonic(make):
    nfa = make()
    all_subsets = list(subsets(nfa.states))
    for s1 in all_subsets:
        for s2 in all_subsets:
            if s1 <= s2:
                assert eclose(s1, nfa) <= eclose(s2, nfa)


def test_closure_is_minimal():
    nfa = branching_nfa()
    # 5 only reaches 6 by epsilon; the x transitions must not be followed
    assert eclose(5, nfa) == {5, 6}
    assert eclose(2, nfa) == {1, 2, 3, 4}


@pytest.mark.parametrize("make", [cyclic_nfa, branching_nfa])
def test_fixpoint_and_depth_first_agree(make):
    nfa = make()
    for state in nfa.states:
        assert eclose(state, nfa) == eclose_dfs(state, nfa)
    for states in subsets(nfa.states):
        assert eclose(states, nfa) == eclose_dfs(states, nfa)


def test_long_epsilon_cycle():
    n = 50
    trans = [(i, EPSILON, (i + 1) % n) for i in range(n)]
    nfa = NFA(range(n + 1), (), 0, trans, ())
    assert eclose(17, nfa) == set(range(n))
    assert eclose_dfs(17, nfa) == set(range(n))
    assert eclose(n, nfa) == {n}


def test_unknown_state():
    nfa = cyclic_nfa()
    with pytest.raises(InvalidStateError):
        eclose(99, nfa)
    with pytest.raises(InvalidStateError):
        eclose({0, 99}, nfa)
    with pytest.raises(InvalidStateError):
        eclose_dfs(99, nfa)
    with pytest.raises(ValueError):
        delta_ext(99, "a", nfa)
    with pytest.raises(InvalidStateError):
        path(0, "a", 99, nfa)


def test_step_does_not_close():
    nfa = cyclic_nfa()
    assert step({0, 1, 2}, "a", nfa) == {3}
    assert step({0}, "a", nfa) == frozenset()
    assert step({5}, "b", nfa) == {0}


def test_delta_ext():
    nfa = cyclic_nfa()
    assert delta_ext(0, "", nfa) == {0, 1, 2}
    assert delta_ext(0, "a", nfa) == {3, 4}
    assert delta_ext(0, "aa", nfa) == frozenset()
    assert delta_ext(5, "b", nfa) == {0, 1, 2}
    assert delta_ext(5, "ba", nfa) == {3, 4}
    assert delta_ext(5, "ab", nfa) == frozenset()


def test_delta_ext_epsilon_word():
    nfa = cyclic_nfa()
    assert delta_ext(0, [EPSILON], nfa) == eclose(0, nfa)
    assert delta_ext(5, [EPSILON], nfa) == {5}
    assert delta_ext(5, ["b", EPSILON, "a"], nfa) == delta_ext(5, "ba", nfa)


def test_delta_ext_reads_words_forward():
    # 1 -a-> 2 -b-> 3: only "ab" gets from 1 to 3
    nfa = NFA([1, 2, 3], "ab", 1, [(1, "a", 2), (2, "b", 3)], [3])
    assert delta_ext(1, "ab", nfa) == {3}
    assert delta_ext(1, "ba", nfa) == frozenset()
    assert delta_ext(1, ("a", "b"), nfa) == {3}


@pytest.mark.parametrize("make", [cyclic_nfa, branching_nfa])
def test_delta_ext_with_either_closure(make):
    nfa = make()
    for state in nfa.states:
        for word in words(nfa.alphabet, 3):
            assert delta_ext(state, word, nfa) == delta_ext(
                state, word, nfa, closure=eclose_dfs
            )


@pytest.mark.parametrize("make", [cyclic_nfa, branching_nfa])
def test_delta_ext_agrees_with_path(make):
    nfa = make()
    for state in nfa.states:
        for word in words(nfa.alphabet, 3):
            reached = delta_ext(state, word, nfa)
            assert reached <= nfa.states
            for dest in nfa.states:
                assert (dest in reached) == path(state, word, dest, nfa)


def test_path():
    nfa = branching_nfa()
    assert path(1, "", 4, nfa)
    assert path(1, "x", 6, nfa)
    assert path(1, "xx", 2, nfa)
    assert not path(1, "", 5, nfa)
    assert not path(5, "x", 6, nfa)


def test_accepts_word():
    nfa = branching_nfa()
    assert accepts_word(nfa, "x")
    assert accepts_word(nfa, "xxx")
    assert not accepts_word(nfa, "")
    assert not accepts_word(nfa, "xx")
    assert nfa.accept("xxxxx")


def test_accepted_words():
    nfa = branching_nfa()
    assert list(accepted_words(nfa, 5)) == [("x",), ("x",) * 3, ("x",) * 5]

    nfa = cyclic_nfa()
    assert list(accepted_words(nfa, 3)) == [("a",)]
    assert list(accepted_words(nfa, 3, alphabet="abc")) == [("a",)]
    assert list(accepted_words(nfa, 0)) == []


def test_start_and_next_state():
    nfa = cyclic_nfa()
    assert nfa.start() == {0, 1, 2}
    assert nfa.next_state(nfa.start(), "a") == {3, 4}
    assert nfa.is_final(nfa.next_state(nfa.start(), "a"))
    assert nfa.get_labels(nfa.start()) == {"a"}


def test_depth_first_closure_of_long_chain():
    n = sys.getrecursionlimit() + 100
    trans = [(i, EPSILON, i + 1) for i in range(n - 1)]
    nfa = NFA(range(n), (), 0, trans, [n - 1])
    assert eclose_dfs(0, nfa) == set(range(n))
    assert eclose_dfs(0, nfa) == eclose(0, nfa)
    assert accepts_word(nfa, "")


def test_closure_of_state_list():
    nfa = cyclic_nfa()
    assert eclose([0, 3], nfa) == {0, 1, 2, 3, 4}
    assert eclose_dfs([5], nfa) == {5}
    assert step([0, 1, 2], "a", nfa) == {3}


def test_unhashable_state():
    nfa = cyclic_nfa()
    with pytest.raises(InvalidStateError):
        eclose([[0]], nfa)
    with pytest.raises(InvalidStateError):
        eclose_dfs({"a": 0}, nfa)
    with pytest.raises(InvalidStateError):
        eclose((0, 1), nfa)
