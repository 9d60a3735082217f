import pytest
import os

from bubblevar.bubbles import (load_ultrabubbles, write_ultrabubbles, boundary_nodes,
                               build_bubble_index, extract_sub_paths, sub_path_edge_orient)
from bubblevar.errors import BubbleFileError
from bubblevar.paths import materialize_paths

# Constants
SEGMENTS = {1: 'ACGT', 2: 'G', 3: 'T', 4: 'CC', 5: 'AAA', 6: 'GGT', 7: 'TTTT'}
RAW_PATHS = [('ref', [(1, '+'), (2, '+'), (4, '+'), (5, '+'), (7, '+')]),
             ('alt', [(1, '+'), (3, '+'), (4, '+'), (6, '+'), (7, '-')]),
             ('short', [(4, '+'), (5, '+'), (7, '+')]),
             ('direct', [(1, '+'), (4, '+')])]
BUBBLES = [(1, 4), (4, 7), (2, 3)]


def make_index(threads: int = 1):
    collection = materialize_paths(SEGMENTS, RAW_PATHS)
    index = build_bubble_index(collection, boundary_nodes(BUBBLES), threads)
    return collection, index


def test_load_ultrabubbles(tmp_path) -> None:
    file_bubble = os.path.join(tmp_path, 'bubbles.tsv')
    with open(file_bubble, 'w') as f:
        f.write('1\t4\n4\t7\textra\n\n18446744073709551615\t2\n')

    assert load_ultrabubbles(file_bubble) == [(1, 4), (4, 7), (18446744073709551615, 2)]


def test_write_ultrabubbles(tmp_path) -> None:
    file_bubble = os.path.join(tmp_path, 'bubbles.tsv')
    write_ultrabubbles(BUBBLES, file_bubble)

    assert load_ultrabubbles(file_bubble) == BUBBLES


@pytest.mark.parametrize("content", ['1\t4\n7\n', '1\tX\n', '-1\t4\n', '18446744073709551616\t4\n'])
def test_load_ultrabubbles_error(tmp_path, content: str) -> None:
    file_bubble = os.path.join(tmp_path, 'bubbles.tsv')
    with open(file_bubble, 'w') as f:
        f.write(content)

    with pytest.raises(BubbleFileError):
        load_ultrabubbles(file_bubble)


def test_boundary_nodes() -> None:
    assert boundary_nodes(BUBBLES) == {1, 2, 3, 4, 7}


@pytest.mark.parametrize("threads", [1, 2])
def test_bubble_index(threads: int) -> None:
    _, index = make_index(threads)

    assert index == {1: {0: 0, 1: 0, 3: 0},
                     2: {0: 1},
                     3: {1: 1},
                     4: {0: 2, 1: 2, 2: 0, 3: 1},
                     7: {0: 4, 1: 4, 2: 2}}


def test_bubble_index_unvisited_node() -> None:
    collection = materialize_paths(SEGMENTS, RAW_PATHS)
    index = build_bubble_index(collection, {1, 99})

    assert 99 not in index


def test_bubble_index_repeated_node() -> None:
    # cycle through node 4, the last visit is kept
    collection = materialize_paths(SEGMENTS, [('cycle', [(1, '+'), (4, '+'), (5, '+'), (4, '+'), (7, '+')])])
    index = build_bubble_index(collection, {4})

    assert index == {4: {0: 3}}


def test_extract_sub_paths() -> None:
    collection, index = make_index()

    sub_paths = extract_sub_paths(index, collection, 1, 4)
    # 'direct' has no interior node, 'short' does not visit node 1
    assert [x[0] for x in sub_paths] == [0, 1]
    assert [step.node for step in sub_paths[0][1]] == [1, 2, 4]
    assert [step.node for step in sub_paths[1][1]] == [1, 3, 4]


def test_extract_sub_paths_reversed_bubble() -> None:
    collection, index = make_index()

    assert extract_sub_paths(index, collection, 7, 4) == extract_sub_paths(index, collection, 4, 7)


def test_extract_sub_paths_no_path() -> None:
    collection, index = make_index()

    # no path visits both 2 and 3
    assert extract_sub_paths(index, collection, 2, 3) == []
    # unknown boundaries
    assert extract_sub_paths(index, collection, 98, 99) == []


def test_degenerate_sub_paths() -> None:
    collection, index = make_index()

    for start, end in BUBBLES:
        for _, steps in extract_sub_paths(index, collection, start, end):
            assert len(steps) >= 3


def test_edge_orient() -> None:
    collection, index = make_index()

    orients = [sub_path_edge_orient(steps) for _, steps in extract_sub_paths(index, collection, 4, 7)]
    assert orients == [('+', '+'), ('+', '-'), ('+', '+')]
