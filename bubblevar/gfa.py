# Minimal GFA1 reader: segments and paths only

import logging
from dataclasses import dataclass, field

from bubblevar.errors import GraphError

logger = logging.getLogger(__name__)

ORIENTATIONS = ('+', '-')


@dataclass
class Graph:
    """ Segment sequences and path traversals of a GFA """
    segments: dict = field(default_factory=dict)    # node id -> sequence
    paths: list = field(default_factory=list)       # [(path name, [(node id, orient)])]


def parse_node_id(name: str, line_no: int) -> int:
    """ Segment names must be unsigned integers """

    if not name.isdigit():
        raise GraphError(f'Line {line_no}: segment name {name} is not an unsigned integer')
    return int(name)


def parse_path_steps(segment_names: str, line_no: int) -> list[tuple[int, str]]:
    """ Parse '1+,2-,3+' into [(1, '+'), (2, '-'), (3, '+')] """

    steps = []
    for step in segment_names.split(','):
        node, orient = step[:-1], step[-1:]
        if orient not in ORIENTATIONS:
            raise GraphError(f'Line {line_no}: invalid orientation in path step {step}')
        steps.append((parse_node_id(node, line_no), orient))

    return steps


def read_gfa(file_gfa: str) -> Graph:
    """ Read S and P lines from a GFA file """

    graph = Graph()
    path_names = set()

    with open(file_gfa) as f:
        for line_no, line in enumerate(f, start=1):
            fields = line.rstrip('\n').split('\t')
            if fields[0] == 'S':
                if len(fields) < 3:
                    raise GraphError(f'Line {line_no}: segment record is missing fields')
                node = parse_node_id(fields[1], line_no)
                if fields[2] in ('*', ''):
                    raise GraphError(f'Line {line_no}: segment {node} has no sequence')
                graph.segments[node] = fields[2]
            elif fields[0] == 'P':
                if len(fields) < 3:
                    raise GraphError(f'Line {line_no}: path record is missing fields')
                name = fields[1]
                if name in path_names:
                    raise GraphError(f'Line {line_no}: duplicate path name {name}')
                path_names.add(name)
                graph.paths.append((name, parse_path_steps(fields[2], line_no)))

    logger.info(f'Read {len(graph.segments)} segments and {len(graph.paths)} paths from {file_gfa}')

    return graph
