#!/usr/bin/env python3

# Report SNPs of all GFA paths against a reference path within ultrabubbles

import logging
import argparse

from bubblevar.bubbles import load_ultrabubbles, boundary_nodes, build_bubble_index
from bubblevar.caller import VariantConfig
from bubblevar.errors import GraphError
from bubblevar.gfa import read_gfa
from bubblevar.paths import materialize_paths
from bubblevar.snps import call_snps, snp_table

logger = logging.getLogger(__name__)


def main(args: argparse.Namespace) -> None:

    # setup logger
    if args.debug:
        log_level = logging.DEBUG
    else:
        log_level = logging.INFO
    logging.basicConfig(level=log_level,
                        format='[%(asctime)s] - [%(levelname)s]: %(message)s',
                        datefmt='%Y-%m-%d %H:%M:%S')

    graph = read_gfa(args.gfa)
    if len(graph.paths) < 2:
        raise GraphError(f'GFA must contain at least two paths, found {len(graph.paths)}')
    logger.info(f'GFA has {len(graph.paths)} paths')

    collection = materialize_paths(graph.segments, graph.paths, args.threads)
    ultrabubbles = sorted(load_ultrabubbles(args.ultrabubbles))
    logger.info(f'Using {len(ultrabubbles)} ultrabubbles')
    index = build_bubble_index(collection, boundary_nodes(ultrabubbles), args.threads)

    config = VariantConfig(ignore_inverted_paths=not args.keep_inv)
    path_snps = call_snps(config, graph.segments, collection, index,
                          ultrabubbles, args.ref, args.threads)

    df = snp_table(path_snps)
    df.to_csv(args.output, sep='\t', index=False)
    logger.info(f'Write {len(df)} SNPs to {args.output}')


if __name__ == '__main__':
    parser = argparse.ArgumentParser(prog='gfa2snps.py',
                                     description='Report SNPs of all GFA paths against a reference path')
    parser.add_argument('-g', '--gfa', metavar='GFA', help='Input GFA', required=True)
    parser.add_argument('-u', '--ultrabubbles', metavar='TSV', help='Ultrabubbles file', required=True)
    parser.add_argument('-r', '--ref', metavar='PATH', help='Name of the reference path', required=True)
    parser.add_argument('-o', '--output', metavar='TSV', help='Output SNP table', required=True)
    parser.add_argument('--keep-inv', action='store_true',
                        help='Also compare paths whose start and end orientations differ from the reference')
    parser.add_argument('-t', '--threads', default=1, type=int,
                        help='Number of processes (default: 1)')
    parser.add_argument('--debug', action='store_true',
                        help='Debug mode')

    args = parser.parse_args()

    main(args)
