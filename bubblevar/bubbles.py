# Bubble boundaries, bubble index and sub-path extraction

import logging

from bubblevar.errors import BubbleFileError
from bubblevar.parallel import parallel_map, get_chunksize
from bubblevar.paths import PathCollection, PathStep

logger = logging.getLogger(__name__)

MAX_NODE_ID = 2 ** 64 - 1


def parse_bubble_field(value: str, line_no: int) -> int:
    """ Bubble boundaries are unsigned 64-bit integers """

    value = value.strip()
    if not value.isdigit() or int(value) > MAX_NODE_ID:
        raise BubbleFileError(f'Line {line_no}: {value!r} is not an unsigned 64-bit integer')
    return int(value)


def load_ultrabubbles(file_bubble: str) -> list[tuple[int, int]]:
    """ Load (from, to) bubble boundaries from a 2-column TSV """

    logger.info(f'Load ultrabubbles from {file_bubble}')
    bubbles = []
    with open(file_bubble) as f:
        for line_no, line in enumerate(f, start=1):
            line = line.rstrip('\r\n')
            if line == '':
                continue
            fields = line.split('\t')
            if len(fields) < 2:
                raise BubbleFileError(f'Line {line_no}: ultrabubble record is missing fields')
            bubbles.append((parse_bubble_field(fields[0], line_no),
                            parse_bubble_field(fields[1], line_no)))

    return bubbles


def write_ultrabubbles(bubbles: list[tuple[int, int]], file_bubble: str) -> None:
    """ Write bubbles in the format read by load_ultrabubbles """

    with open(file_bubble, 'w') as f:
        for start, end in bubbles:
            f.write(f'{start}\t{end}\n')


def boundary_nodes(bubbles: list[tuple[int, int]]) -> set[int]:
    """ All nodes that bound at least one bubble """

    nodes = set()
    for start, end in bubbles:
        nodes.add(start)
        nodes.add(end)

    return nodes


# read-only data installed in each worker
_boundary = set()
_path_nodes = []


def _init_phase1(nodes: set) -> None:
    global _boundary
    _boundary = nodes


def _init_phase2(path_nodes: list) -> None:
    global _path_nodes
    _path_nodes = path_nodes


def path_boundary_steps(steps: list[PathStep]) -> dict[int, int]:
    """ Boundary node -> step index in one path """

    # a node visited more than once keeps its last step index
    return {step.node: i for i, step in enumerate(steps) if step.node in _boundary}


def node_path_steps(node: int) -> tuple[int, dict[int, int]]:
    """ Path index -> step index for one boundary node """

    return node, {path_idx: step_map[node]
                  for path_idx, step_map in enumerate(_path_nodes)
                  if node in step_map}


def build_bubble_index(collection: PathCollection, nodes: set[int],
                       threads: int = 1) -> dict[int, dict[int, int]]:
    """
    Map every boundary node to the step index where each path visits it

    Phase 1 scans each path once for boundary nodes, phase 2 transposes
    the per-path results into per-node maps. Nodes visited by no path
    have no entry.
    """

    logger.debug(f'Finding boundary node indices for {len(collection)} paths')
    path_nodes = parallel_map(path_boundary_steps, collection.paths, threads,
                              initializer=_init_phase1, initargs=(nodes,),
                              chunksize=get_chunksize(len(collection), threads))

    # only nodes seen in phase 1 need to be transposed
    seen_nodes = set()
    for step_map in path_nodes:
        seen_nodes.update(step_map.keys())
    seen_nodes = sorted(seen_nodes)

    logger.debug(f'Transposing path indices for {len(seen_nodes)} boundary nodes')
    transposed = parallel_map(node_path_steps, seen_nodes, threads,
                              initializer=_init_phase2, initargs=(path_nodes,),
                              chunksize=get_chunksize(len(seen_nodes), threads))

    index = {node: path_map for node, path_map in transposed}
    logger.debug(f'{len(nodes) - len(index)} boundary nodes are not on any path')

    return index


def extract_sub_paths(index: dict[int, dict[int, int]], collection: PathCollection,
                      start: int, end: int) -> list[tuple[int, list[PathStep]]]:
    """
    Slice every path that visits both bubble boundaries

    The slice covers both boundary steps regardless of which comes first.
    Slices without interior steps are dropped. Return [(path index, steps)].
    """

    start_idx = index.get(start)
    end_idx = index.get(end)
    if start_idx is None or end_idx is None:
        return []

    sub_paths = []
    for path_idx, i in start_idx.items():
        j = end_idx.get(path_idx)
        if j is None:
            continue
        lo, hi = min(i, j), max(i, j)
        # no interior, no variation
        if hi - lo < 2:
            continue
        sub_paths.append((path_idx, collection[path_idx][lo:hi + 1]))

    # keep path order of the collection
    sub_paths.sort(key=lambda x: x[0])

    return sub_paths


def sub_path_edge_orient(steps: list[PathStep]) -> tuple[str, str]:
    """ Orientation of the first and last step """

    return steps[0].orient, steps[-1].orient
