# Compare a query sub-path against a reference sub-path

import logging
from collections import defaultdict
from typing import Iterator, NamedTuple

from bubblevar.errors import MissingNodeError, SubPathError
from bubblevar.paths import PathStep

logger = logging.getLogger(__name__)

# variant kinds, also used as INFO/TYPE
DEL = 'del'
INS = 'ins'
SNV = 'snv'
MNP = 'mnp'
# aligned but different nodes
ALIGNED = 'aligned'


class VariantKey(NamedTuple):
    """ Locus of a variant on a reference path """
    ref_name: str
    pos: int        # VCF position on the reference path
    ref: str        # reference allele


class Variant(NamedTuple):
    """ Alternate allele observed at a VariantKey """
    kind: str
    alt: str

    def __str__(self) -> str:
        return f'{self.kind.capitalize()}({self.alt})'


def get_sequence(segments: dict[int, str], node: int) -> str:
    try:
        return segments[node]
    except KeyError:
        raise MissingNodeError(node) from None


def prev_base(segments: dict[int, str], ref_path: list[PathStep], ref_idx: int) -> str:
    """ Last base of the step before ref_idx, or of the first step """

    prev_node = ref_path[ref_idx - 1].node if ref_idx > 0 else ref_path[0].node
    seq = get_sequence(segments, prev_node)
    if len(seq) == 0:
        raise SubPathError(f'Node {prev_node} has an empty sequence')
    return seq[-1]


def align_sub_paths(ref_path: list[PathStep],
                    query_path: list[PathStep]) -> Iterator[tuple[str, int, int]]:
    """
    Walk the reference and query sub-paths node by node

    Matching nodes advance both sides silently. When the current nodes
    differ, look one step ahead:
    - the next reference node is the current query node: yield DEL,
      advance the reference only
    - the next query node is the current reference node: yield INS,
      advance the query only
    - neither, and both sides have a next step: yield ALIGNED, advance both
    Otherwise the walk stops, any divergence after that point is not
    reported.

    Yield (operation, ref index, query index).
    """

    ref_idx = 0
    query_idx = 0

    while ref_idx < len(ref_path) and query_idx < len(query_path):
        ref_node = ref_path[ref_idx].node
        query_node = query_path[query_idx].node
        has_next_ref = ref_idx + 1 < len(ref_path)
        has_next_query = query_idx + 1 < len(query_path)

        if ref_node == query_node:
            ref_idx += 1
            query_idx += 1
        elif has_next_ref and ref_path[ref_idx + 1].node == query_node:
            yield DEL, ref_idx, query_idx
            ref_idx += 1
        elif has_next_query and query_path[query_idx + 1].node == ref_node:
            yield INS, ref_idx, query_idx
            query_idx += 1
        elif has_next_ref and has_next_query:
            yield ALIGNED, ref_idx, query_idx
            ref_idx += 1
            query_idx += 1
        else:
            logger.debug(f'Reach the end of ref or query at ref {ref_idx}, query {query_idx}')
            break


def detect_variants_against_ref(segments: dict[int, str], ref_name: str,
                                ref_path: list[PathStep],
                                query_path: list[PathStep]) -> dict[VariantKey, set[Variant]]:
    """
    Call variants of a query sub-path against a reference sub-path

    DEL: REF is the base before the reference node plus the node, ALT the base
    INS: REF is the base before the reference node, ALT the base plus the query node
    Aligned nodes: SNV if both nodes are 1 bp, else MNP with the whole query node
    Aligned nodes with identical sequences are not variants.
    """

    if len(ref_path) == 0 or len(query_path) == 0:
        raise SubPathError(f'Can not compare empty sub-path against {ref_name}')

    variants = defaultdict(set)

    for op, ref_idx, query_idx in align_sub_paths(ref_path, query_path):
        ref_node, ref_offset, _ = ref_path[ref_idx]
        ref_seq = get_sequence(segments, ref_node)
        query_seq = get_sequence(segments, query_path[query_idx].node)
        logger.debug(f'{ref_name}: {op} at ref {ref_idx}, query {query_idx}')

        if op == DEL:
            base = prev_base(segments, ref_path, ref_idx)
            key = VariantKey(ref_name, ref_offset - 1, base + ref_seq)
            variants[key].add(Variant(DEL, base))
        elif op == INS:
            base = prev_base(segments, ref_path, ref_idx)
            key = VariantKey(ref_name, ref_offset - 1, base)
            variants[key].add(Variant(INS, base + query_seq))
        elif ref_seq != query_seq:
            key = VariantKey(ref_name, ref_offset, ref_seq)
            if len(ref_seq) == 1 and len(query_seq) == 1:
                variants[key].add(Variant(SNV, query_seq))
            else:
                variants[key].add(Variant(MNP, query_seq))

    return dict(variants)


def merge_variant_maps(target: dict, source: dict) -> dict:
    """ In-place union of variant sets per key, return target """

    for key, var_set in source.items():
        if key in target:
            target[key] |= var_set
        else:
            target[key] = set(var_set)

    return target
