# SNPs of every path against a single reference path

import logging
from typing import NamedTuple

import pandas as pd

from bubblevar.bubbles import extract_sub_paths, sub_path_edge_orient
from bubblevar.caller import VariantConfig
from bubblevar.errors import BubbleVarError, ReferencePathError
from bubblevar.parallel import parallel_map, get_chunksize
from bubblevar.paths import PathCollection
from bubblevar.variants import ALIGNED, align_sub_paths, get_sequence

logger = logging.getLogger(__name__)

SNP_COLUMNS = ['path', 'reference base', 'reference pos', 'query base', 'query pos']


class SNPRow(NamedTuple):
    ref_base: str
    ref_pos: int
    query_base: str
    query_pos: int


def find_snps_in_sub_paths(config: VariantConfig, segments: dict[int, str],
                           collection: PathCollection, ref_idx: int, index: dict,
                           start: int, end: int) -> dict[str, list[SNPRow]] | None:
    """
    SNPs of each query path in one bubble

    Return {query path name: [SNPRow]}, or None if the reference path has
    no usable sub-path in this bubble.
    """

    sub_paths = extract_sub_paths(index, collection, start, end)
    ref_path = None
    for path_idx, steps in sub_paths:
        if path_idx == ref_idx:
            ref_path = steps
            break
    if ref_path is None:
        return None

    ref_orient = sub_path_edge_orient(ref_path)
    snps = {}
    for query_idx, query_path in sub_paths:
        if query_idx == ref_idx:
            continue
        if config.ignore_path(ref_orient, sub_path_edge_orient(query_path)):
            logger.debug(f'Bubble {start}-{end}: ignore inverted path {collection.names[query_idx]}')
            continue

        rows = []
        for op, i, j in align_sub_paths(ref_path, query_path):
            if op != ALIGNED:
                continue
            ref_seq = get_sequence(segments, ref_path[i].node)
            query_seq = get_sequence(segments, query_path[j].node)
            if len(ref_seq) == 1 and len(query_seq) == 1 and ref_seq != query_seq:
                rows.append(SNPRow(ref_seq, ref_path[i].offset, query_seq, query_path[j].offset))
        if len(rows) > 0:
            snps[collection.names[query_idx]] = rows

    return snps


# read-only data installed in each worker
_shared = {}


def _init_worker(config: VariantConfig, segments: dict, collection: PathCollection,
                 ref_idx: int, index: dict) -> None:
    global _shared
    _shared = {'config': config, 'segments': segments, 'collection': collection,
               'ref_idx': ref_idx, 'index': index}


def snp_bubble(bubble: tuple[int, int]) -> dict[str, list[SNPRow]]:
    start, end = bubble
    try:
        snps = find_snps_in_sub_paths(_shared['config'], _shared['segments'], _shared['collection'],
                                      _shared['ref_idx'], _shared['index'], start, end)
    except BubbleVarError as e:
        logger.warning(f'Skip bubble {start}-{end}: {e}')
        return {}

    return {} if snps is None else snps


def call_snps(config: VariantConfig, segments: dict[int, str], collection: PathCollection,
              index: dict, bubbles: list[tuple[int, int]], ref_name: str,
              threads: int = 1) -> dict[str, list[SNPRow]]:
    """ SNPs of all paths against ref_name in all bubbles """

    if ref_name not in collection:
        raise ReferencePathError(f'Reference path {ref_name} does not exist in the graph')
    ref_idx = collection.index(ref_name)

    logger.info(f'Using reference path {ref_name}')
    results = parallel_map(snp_bubble, bubbles, threads,
                           initializer=_init_worker,
                           initargs=(config, segments, collection, ref_idx, index),
                           chunksize=get_chunksize(len(bubbles), threads))

    path_snps = {}
    for bubble_snps in results:
        for name, rows in bubble_snps.items():
            path_snps.setdefault(name, []).extend(rows)

    logger.info(f'Found SNPs on {len(path_snps)} paths')

    return path_snps


def snp_table(path_snps: dict[str, list[SNPRow]]) -> pd.DataFrame:
    """ Sorted table of SNPs, one row per path and SNP """

    data = [[name] + list(row) for name, rows in path_snps.items() for row in rows]
    df = pd.DataFrame(data, columns=SNP_COLUMNS)
    df = df.drop_duplicates()
    df = df.sort_values(['path', 'reference pos', 'query pos'], kind='mergesort')

    return df.reset_index(drop=True)
