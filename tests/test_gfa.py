import pytest
import os

from bubblevar.errors import GraphError
from bubblevar.gfa import read_gfa

# Constants
TEST_DIR = os.path.dirname(os.path.abspath(__file__))
INPUT_DIR = os.path.join(TEST_DIR, 'gfa2vcf', 'input')


def write_gfa(tmp_path, lines: list[str]) -> str:
    file_gfa = os.path.join(tmp_path, 'test.gfa')
    with open(file_gfa, 'w') as f:
        f.write('\n'.join(lines) + '\n')
    return file_gfa


def test_read_gfa() -> None:
    graph = read_gfa(os.path.join(INPUT_DIR, 'basic.gfa'))

    assert len(graph.segments) == 11
    assert graph.segments[5] == 'AAA'
    assert [name for name, _ in graph.paths] == ['ref', 'alt1', 'alt2']
    assert graph.paths[2][1] == [(1, '+'), (11, '+'), (4, '+'), (5, '+'),
                                 (7, '+'), (8, '+'), (9, '+')]


def test_orientation() -> None:
    graph = read_gfa(os.path.join(INPUT_DIR, 'inverted.gfa'))

    assert graph.paths[1] == ('alt', [(1, '+'), (3, '+'), (4, '-')])


@pytest.mark.parametrize("lines", [
    ['S\tseg1\tACGT'],                      # non-integer segment
    ['S\t1\t*'],                            # no sequence
    ['S\t1\t'],                             # empty sequence
    ['S\t1\tA', 'P\tp1\t1?\t*'],            # invalid orientation
    ['S\t1\tA', 'P\tp1\t1+\t*', 'P\tp1\t1+\t*'],    # duplicate path
    ['S\t1'],                               # missing fields
])
def test_malformed(tmp_path, lines: list[str]) -> None:
    with pytest.raises(GraphError):
        read_gfa(write_gfa(tmp_path, lines))
