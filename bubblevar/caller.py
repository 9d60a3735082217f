# Call variants in all bubbles against the reference paths

import logging
from dataclasses import dataclass

from bubblevar.bubbles import extract_sub_paths, sub_path_edge_orient
from bubblevar.errors import BubbleVarError, ReferencePathError
from bubblevar.parallel import parallel_map, get_chunksize
from bubblevar.paths import PathCollection
from bubblevar.variants import detect_variants_against_ref, merge_variant_maps

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VariantConfig:
    """ Options of variant calling """
    ignore_inverted_paths: bool = True      # skip pairs with different edge orientations
    ref_paths: frozenset | None = None      # reference path names, None for all paths

    def ignore_path(self, ref_orient: tuple[str, str], query_orient: tuple[str, str]) -> bool:
        return self.ignore_inverted_paths and ref_orient != query_orient

    def is_ref_path(self, name: str) -> bool:
        return self.ref_paths is None or name in self.ref_paths


@dataclass
class BubbleCounter:
    """ Counter for processed bubbles """
    bubbles: int = 0            # Number of input bubbles
    variant: int = 0            # Number of bubbles with variants
    no_sub_path: int = 0        # Number of bubbles without any usable sub-path
    failed: int = 0             # Number of bubbles skipped due to errors
    compared: int = 0           # Number of compared ref/query pairs
    inverted: int = 0           # Number of ref/query pairs skipped due to inversion

    def update(self, other: 'BubbleCounter') -> None:
        self.bubbles += other.bubbles
        self.variant += other.variant
        self.no_sub_path += other.no_sub_path
        self.failed += other.failed
        self.compared += other.compared
        self.inverted += other.inverted


def validate_ref_paths(config: VariantConfig, collection: PathCollection) -> None:
    """ All requested reference paths must exist in the graph """

    if config.ref_paths is None:
        return
    missing = sorted(x for x in config.ref_paths if x not in collection)
    if len(missing) > 0:
        raise ReferencePathError(f'Reference paths not found in the graph: {", ".join(missing)}')


def query_sort_key(sub_path: tuple[int, list]) -> tuple:
    return tuple(sub_path[1])


def dedup_query_paths(sub_paths: list[tuple[int, list]]) -> list[tuple[int, list]]:
    """ Drop sub-paths with identical steps, keep the first one after sorting """

    query_paths = []
    for sub_path in sorted(sub_paths, key=query_sort_key):
        if len(query_paths) > 0 and query_paths[-1][1] == sub_path[1]:
            continue
        query_paths.append(sub_path)

    return query_paths


def detect_variants_in_sub_paths(config: VariantConfig, segments: dict[int, str],
                                 collection: PathCollection, index: dict,
                                 start: int, end: int,
                                 counter: BubbleCounter = None) -> dict | None:
    """
    Call variants of one bubble

    Return {ref_name: {VariantKey: {Variant}}}, or None if no path has a
    usable sub-path in this bubble.
    """

    if counter is None:
        counter = BubbleCounter()

    sub_paths = extract_sub_paths(index, collection, start, end)
    if len(sub_paths) == 0:
        return None

    query_paths = dedup_query_paths(sub_paths)
    logger.debug(f'Bubble {start}-{end}: {len(sub_paths)} sub-paths, {len(query_paths)} distinct')

    variants = {}
    for ref_idx, ref_path in sub_paths:
        ref_name = collection.names[ref_idx]
        if not config.is_ref_path(ref_name):
            continue
        ref_orient = sub_path_edge_orient(ref_path)
        ref_map = {}

        for query_idx, query_path in query_paths:
            if query_idx == ref_idx:
                continue
            query_orient = sub_path_edge_orient(query_path)
            if config.ignore_path(ref_orient, query_orient):
                logger.debug(f'Bubble {start}-{end}: ignore inverted path {collection.names[query_idx]} ' +
                             f'({query_orient}) against {ref_name} ({ref_orient})')
                counter.inverted += 1
                continue

            counter.compared += 1
            var_map = detect_variants_against_ref(segments, ref_name, ref_path, query_path)
            merge_variant_maps(ref_map, var_map)

        variants[ref_name] = ref_map

    return variants


# read-only data installed in each worker
_shared = {}


def _init_worker(config: VariantConfig, segments: dict, collection: PathCollection, index: dict) -> None:
    global _shared
    _shared = {'config': config, 'segments': segments, 'collection': collection, 'index': index}


def call_bubble(bubble: tuple[int, int]) -> tuple[dict, BubbleCounter]:
    """ Work unit of a single bubble, errors only skip this bubble """

    start, end = bubble
    counter = BubbleCounter(bubbles=1)
    try:
        variants = detect_variants_in_sub_paths(_shared['config'], _shared['segments'],
                                                _shared['collection'], _shared['index'],
                                                start, end, counter)
    except BubbleVarError as e:
        logger.warning(f'Skip bubble {start}-{end}: {e}')
        counter.failed += 1
        return {}, counter

    if variants is None:
        counter.no_sub_path += 1
        return {}, counter
    if any(len(x) > 0 for x in variants.values()):
        counter.variant += 1

    return variants, counter


def call_variants(config: VariantConfig, segments: dict[int, str],
                  collection: PathCollection, index: dict,
                  bubbles: list[tuple[int, int]],
                  threads: int = 1) -> tuple[dict, BubbleCounter]:
    """
    Call variants in all bubbles

    Each bubble is processed independently and returns its own map,
    the maps are merged afterwards into
    {ref_name: {VariantKey: {Variant}}}.
    """

    validate_ref_paths(config, collection)

    logger.info(f'Identify variants in {len(bubbles)} ultrabubbles')
    results = parallel_map(call_bubble, bubbles, threads,
                           initializer=_init_worker,
                           initargs=(config, segments, collection, index),
                           chunksize=get_chunksize(len(bubbles), threads))

    all_variants = {}
    counter = BubbleCounter()
    for bubble_variants, bubble_counter in results:
        counter.update(bubble_counter)
        for ref_name, var_map in bubble_variants.items():
            if ref_name not in all_variants:
                all_variants[ref_name] = {}
            merge_variant_maps(all_variants[ref_name], var_map)

    log_summary(counter)

    return all_variants, counter


def log_summary(counter: BubbleCounter) -> None:

    logger.info(f'Processed {counter.bubbles} bubbles, {counter.variant} bubbles have variants')
    logger.info(f'{counter.no_sub_path} bubbles are skipped as no path traverses them with interior nodes')
    if counter.failed > 0:
        logger.warning(f'{counter.failed} bubbles are skipped due to errors')
    logger.info(f'Compared {counter.compared} ref/query sub-path pairs')
    if counter.inverted > 0:
        logger.info(f'{counter.inverted} ref/query sub-path pairs are skipped due to inverted orientation')


def load_paths_file(file_paths: str) -> list[str]:
    """ Path names, one per line """

    with open(file_paths) as f:
        names = [line.strip() for line in f]

    return [x for x in names if x != '']


def reference_paths(path_lst: list[str] = None, file_paths: str = None) -> frozenset | None:
    """ Union of listed and file-provided reference paths, None if both are empty """

    names = set()
    if path_lst is not None:
        names.update(path_lst)
    if file_paths is not None:
        names.update(load_paths_file(file_paths))

    return frozenset(names) if len(names) > 0 else None
