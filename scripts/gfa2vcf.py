#!/usr/bin/env python3

# Call variants from pangenome GFA paths within ultrabubbles

import logging
import argparse

from bubblevar.bubbles import load_ultrabubbles, boundary_nodes, build_bubble_index
from bubblevar.caller import VariantConfig, call_variants, reference_paths, validate_ref_paths
from bubblevar.errors import GraphError
from bubblevar.gfa import read_gfa
from bubblevar.paths import materialize_paths
from bubblevar.vcf import assemble_records, make_header, path_contigs, write_vcf

logger = logging.getLogger(__name__)
logger.propagate = False


def setup_logger(log_level) -> None:
    """ Setup logger for this script and bubblevar """

    formatter = logging.Formatter(
        '[%(asctime)s] - [%(levelname)s]: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    for log in [logger, logging.getLogger('bubblevar')]:
        log.handlers.clear()
        log.setLevel(log_level)
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        log.addHandler(handler)

    return None


def main() -> None:

    args = parse_args()

    # setup logger
    if args.debug:
        log_level = logging.DEBUG
    else:
        log_level = logging.INFO
    setup_logger(log_level)

    # check all inputs before calling
    config = VariantConfig(ignore_inverted_paths=not args.keep_inv,
                           ref_paths=reference_paths(args.paths, args.paths_file))
    graph = read_gfa(args.gfa)
    if len(graph.paths) < 2:
        raise GraphError(f'GFA must contain at least two paths, found {len(graph.paths)}')
    logger.info(f'GFA has {len(graph.paths)} paths')

    logger.info('Extracting paths and offsets from GFA')
    collection = materialize_paths(graph.segments, graph.paths, args.threads)
    validate_ref_paths(config, collection)
    if config.ref_paths is not None:
        logger.info(f'Using {len(config.ref_paths)} reference paths')

    ultrabubbles = load_ultrabubbles(args.ultrabubbles)
    logger.info(f'Using {len(ultrabubbles)} ultrabubbles')

    logger.info('Finding ultrabubble path indices')
    index = build_bubble_index(collection, boundary_nodes(ultrabubbles), args.threads)

    # call variants
    variants, _ = call_variants(config, graph.segments, collection, index,
                                ultrabubbles, args.threads)
    records = assemble_records(variants)

    # write output VCF
    ref_names = collection.names if config.ref_paths is None else config.ref_paths
    header = make_header(args.gfa, path_contigs(collection, ref_names))
    write_vcf(args.outvcf, header, records)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog='gfa2vcf.py',
                                     description='Call variants between GFA paths within ultrabubbles')

    io_arg = parser.add_argument_group('Input / Output arguments')
    io_arg.add_argument('-g', '--gfa', metavar='GFA', required=True,
                        help='Input GFA with segment IDs as integers')
    io_arg.add_argument('-u', '--ultrabubbles', metavar='TSV', required=True,
                        help='Ultrabubbles file, one tab-separated "from to" node pair per line')
    io_arg.add_argument('-o', '--outvcf', metavar='VCF', required=True,
                        help='Output VCF')

    call_arg = parser.add_argument_group('Calling arguments')
    call_arg.add_argument('--paths', metavar='PATH', nargs='+', default=None,
                          help='Paths used as reference. Default: all paths')
    call_arg.add_argument('--paths-file', metavar='FILE', default=None,
                          help='File of paths used as reference, one per line. Default: %(default)s')
    call_arg.add_argument('--keep-inv', action='store_true',
                          help='Also compare paths whose start and end orientations differ from the reference')

    other_arg = parser.add_argument_group('Other arguments')
    other_arg.add_argument('-t', '--threads', metavar='1', type=int, default=1,
                           help='Number of processes. Default: %(default)s')
    other_arg.add_argument('--debug', action='store_true',
                           help='Debug mode')

    args = parser.parse_args()

    return args


if __name__ == '__main__':
    main()
