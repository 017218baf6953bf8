# Copyright 2014 Matt Chaput. All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
#    1. Redistributions of source code must retain the above copyright notice,
#       this list of conditions and the following disclaimer.
#
#    2. Redistributions in binary form must reproduce the above copyright
#       notice, this list of conditions and the following disclaimer in the
#       documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY MATT CHAPUT ``AS IS'' AND ANY EXPRESS OR
# IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED WARRANTIES OF
# MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO
# EVENT SHALL MATT CHAPUT OR CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT,
# INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT
# LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA,
# OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING
# NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
#
# The views and conclusions contained in the software and documentation are
# those of the authors and should not be interpreted as representing official
# policies, either expressed or implied, of Matt Chaput.

"""
Epsilon closure and the extended transition function of an :class:`NFA`.

Two closure algorithms are provided. :func:`eclose` iterates to a fixpoint
breadth first and is the one used everywhere by default. :func:`eclose_dfs`
searches depth first along an explicit path of visited states. They always
return the same set, so either can be passed as the ``closure`` argument of
:func:`delta_ext`.
"""

from loguru import logger

from renfa.automata.fsa import EPSILON, InvalidStateError, _label_key


def _as_states(states, nfa):
    # A set, frozenset or list holds several states; anything else, tuples
    # included, is a single state
    try:
        if isinstance(states, (set, frozenset, list)):
            states = frozenset(states)
        else:
            states = frozenset((states,))
    except TypeError:
        raise InvalidStateError(f"{states!r} is not a state of {nfa!r}") from None

    unknown = states - nfa.states
    if unknown:
        raise InvalidStateError(
            f"States {sorted(unknown, key=repr)} do not belong to {nfa!r}"
        )
    return states


def eclose(states, nfa):
    """
    Returns the epsilon closure of the given states: every state reachable
    from one of them by following zero or more epsilon transitions.

    Each round collects the epsilon successors of the states discovered in
    the previous round, and the loop stops as soon as a round discovers
    nothing new. The closure only grows, and is bounded by ``nfa.states``,
    so this terminates even when the epsilon transitions form cycles.

    Args:
        states: A state of ``nfa``, or a set, frozenset or list of them.
        nfa (NFA): The automaton.

    Returns:
        frozenset: The closure. It always contains ``states``.

    Raises:
        InvalidStateError: If a state does not belong to ``nfa``.

    Example:
        >>> nfa = NFA({0, 1, 2}, (), 0, [(0, EPSILON, 1), (1, EPSILON, 0)], ())
        >>> sorted(eclose(0, nfa))
        [0, 1]
    """
    states = _as_states(states, nfa)
    closure = set(states)
    frontier = states
    while frontier:
        found = set()
        for state in frontier:
            found.update(nfa.epsilon_successors(state))
        if found <= closure:
            break
        frontier = found - closure
        closure |= frontier
    return frozenset(closure)


def eclose_dfs(states, nfa):
    """
    Returns the epsilon closure of the given states by depth first search.

    Every frame on the search stack carries the path of states followed from
    the origin. A successor is only pushed if it is not already on that
    path, so each new frame has a longer path than the one that pushed it
    and no path can be longer than the number of states in the automaton.
    States found by earlier branches are folded into the result and not
    searched again. The stack is explicit, so long epsilon chains do not
    run into the interpreter's recursion limit.

    Takes the same arguments and returns the same set as :func:`eclose`.
    """
    states = _as_states(states, nfa)
    limit = len(nfa.states)

    found = set()
    for origin in states:
        if origin in found:
            continue
        stack = [(origin, (origin,))]
        while stack:
            state, visited = stack.pop()
            if state in found:
                continue
            assert len(visited) <= limit
            found.add(state)
            for dest in nfa.epsilon_successors(state):
                if dest not in visited and dest not in found:
                    stack.append((dest, visited + (dest,)))
    return frozenset(found)


def step(states, symbol, nfa):
    """
    Returns the states reached from ``states`` by exactly one transition
    labelled ``symbol``, without taking epsilon moves before or after.
    """
    dests = set()
    for state in _as_states(states, nfa):
        dests.update(nfa.symbol_successors(state, symbol))
    return frozenset(dests)


def delta_ext(state, word, nfa, closure=eclose):
    """
    The extended transition function. Returns the set of states reachable
    from ``state`` by consuming ``word``, taking any number of epsilon moves
    before and after each symbol.

    The word is read in its natural order, first symbol first. Each symbol
    is consumed from the closed set reached by the symbols before it, and
    the states it leads to are closed again. ``EPSILON`` appearing in the
    word consumes nothing, so ``(EPSILON,)`` behaves like the empty word.

    Args:
        state: The state to start from.
        word (iterable): The symbols to consume. A string is read one
            character at a time.
        nfa (NFA): The automaton.
        closure (callable): The closure algorithm, :func:`eclose` or
            :func:`eclose_dfs`.

    Returns:
        frozenset: The reachable states, always a subset of ``nfa.states``.

    Raises:
        InvalidStateError: If ``state`` does not belong to ``nfa``.
    """
    current = closure(state, nfa)
    for symbol in word:
        if symbol is EPSILON:
            continue
        if not current:
            break
        current = closure(step(current, symbol, nfa), nfa)
    logger.trace("delta_ext({!r}, {!r}) -> {}", state, word, sorted(current))
    return current


def path(state, word, dest, nfa):
    """
    Checks whether ``dest`` can be reached from ``state`` by consuming
    exactly the symbols of ``word``, in order, with free epsilon moves
    anywhere along the way.

    This searches the graph of ``(state, position in word)`` configurations
    directly instead of building closures, so it is an independent check of
    :func:`delta_ext`: ``dest in delta_ext(state, word, nfa)`` if and only if
    ``path(state, word, dest, nfa)``.

    Raises:
        InvalidStateError: If ``state`` or ``dest`` does not belong to
            ``nfa``.
    """
    _as_states([state, dest], nfa)
    symbols = [symbol for symbol in word if symbol is not EPSILON]
    goal = (dest, len(symbols))

    stack = [(state, 0)]
    seen = {(state, 0)}
    while stack:
        config = stack.pop()
        if config == goal:
            return True
        current, pos = config

        moves = [(s, pos) for s in nfa.epsilon_successors(current)]
        if pos < len(symbols):
            moves.extend(
                (s, pos + 1)
                for s in nfa.symbol_successors(current, symbols[pos])
            )
        for move in moves:
            if move not in seen:
                seen.add(move)
                stack.append(move)
    return False


def accepts_word(nfa, word):
    """
    Returns True if ``nfa`` accepts ``word``, that is, some final state is
    reachable from the start state by consuming it.
    """
    return nfa.is_final(delta_ext(nfa.initial, word, nfa))


def accepted_words(nfa, max_length, alphabet=None):
    """
    Generates every word of at most ``max_length`` symbols that the automaton
    accepts, shortest first and in sorted order within each length.

    Args:
        nfa (NFA): The automaton.
        max_length (int): The longest word to consider.
        alphabet (iterable, optional): The symbols to build words from.
            Defaults to the automaton's alphabet.

    Yields:
        tuple: The accepted words.
    """
    if alphabet is None:
        alphabet = nfa.alphabet
    symbols = sorted(alphabet, key=_label_key)

    frontier = [((), nfa.start())]
    for length in range(max_length + 1):
        following = []
        for word, states in frontier:
            if nfa.is_final(states):
                yield word
            if length == max_length:
                continue
            for symbol in symbols:
                dests = nfa.next_state(states, symbol)
                if dests:
                    following.append((word + (symbol,), dests))
        frontier = following
