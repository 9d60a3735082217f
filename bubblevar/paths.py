# Materialize graph paths into steps with base offsets

import logging
from typing import NamedTuple

import numpy as np

from bubblevar.errors import GraphError, MissingNodeError
from bubblevar.parallel import parallel_map, get_chunksize

logger = logging.getLogger(__name__)


class PathStep(NamedTuple):
    """ One step of a path """
    node: int       # node id
    offset: int     # 1-based position of the first base of this step on the path
    orient: str     # '+' or '-'


class PathCollection:
    """ Path names and their steps, index i of names corresponds to index i of paths """

    def __init__(self, names: list[str], paths: list[list[PathStep]], lengths: list[int]) -> None:

        if len(names) != len(paths) or len(names) != len(lengths):
            raise ValueError('Path names, steps and lengths must have the same size')
        if len(set(names)) != len(names):
            raise GraphError('Path names are not unique')

        self.names = names          # path index -> path name
        self.paths = paths          # path index -> list of PathStep
        self.lengths = lengths      # path index -> total number of bases
        self._name_idx = {name: i for i, name in enumerate(names)}


    def __len__(self) -> int:
        return len(self.names)


    def __getitem__(self, key: int) -> list[PathStep]:
        return self.paths[key]


    def __contains__(self, name: str) -> bool:
        return name in self._name_idx


    def index(self, name: str) -> int:
        """ Get path index by name """

        return self._name_idx[name]


    def items(self):
        return zip(self.names, self.paths)


# read-only node lengths installed in each worker
_node_len = {}


def _init_worker(node_len: dict) -> None:
    global _node_len
    _node_len = node_len


def path_offsets(path: tuple[str, list[tuple[int, str]]]) -> tuple[list[PathStep], int]:
    """ Compute 1-based offsets of every step, return steps and path length """

    name, steps = path
    if len(steps) == 0:
        return [], 0

    for node, _ in steps:
        if node not in _node_len:
            raise MissingNodeError(node, name)

    node_len = np.fromiter((_node_len[node] for node, _ in steps), dtype=np.int64, count=len(steps))
    # offset of step i = 1 + total length of steps 0..i-1
    offsets = np.ones(len(steps), dtype=np.int64)
    offsets[1:] += np.cumsum(node_len[:-1])

    path_steps = [PathStep(node, offset, orient)
                  for (node, orient), offset in zip(steps, offsets.tolist())]

    return path_steps, int(node_len.sum())


def materialize_paths(segments: dict[int, str], raw_paths: list, threads: int = 1) -> PathCollection:
    """
    Convert (name, [(node, orient)]) paths into a PathCollection

    Raise MissingNodeError if any path uses a node absent from segments.
    """

    node_len = {node: len(seq) for node, seq in segments.items()}
    names = [name for name, _ in raw_paths]

    results = parallel_map(path_offsets, raw_paths, threads,
                           initializer=_init_worker, initargs=(node_len,),
                           chunksize=get_chunksize(len(raw_paths), threads))

    paths = [steps for steps, _ in results]
    lengths = [length for _, length in results]
    logger.debug(f'Materialized {len(paths)} paths with {sum(len(x) for x in paths)} steps')

    return PathCollection(names, paths, lengths)
