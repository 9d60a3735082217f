# Convert called variants into sorted VCF records and write VCF

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import pysam
import pandas as pd

from bubblevar.paths import PathCollection

logger = logging.getLogger(__name__)

VCF_COLUMNS = ['#CHROM', 'POS', 'ID', 'REF', 'ALT', 'QUAL', 'FILTER', 'INFO']


def display_field(value) -> str:
    return '.' if value is None else str(value)


@dataclass(frozen=True)
class VCFRecord:
    """ One VCF line, alleles and types are positionally correlated """
    chrom: str
    pos: int
    ref: str
    alts: tuple
    types: tuple
    id: str = None
    qual: int = None
    filter: str = None

    @property
    def alt(self) -> str:
        return ','.join(self.alts)

    @property
    def info(self) -> str:
        return 'TYPE=' + ';TYPE='.join(self.types)

    def sort_key(self) -> tuple:
        return (self.chrom.encode(), self.pos, self.ref, self.alts, self.types)

    def to_list(self) -> list:
        return [self.chrom, self.pos, display_field(self.id), self.ref, self.alt,
                display_field(self.qual), display_field(self.filter), self.info]

    def __str__(self) -> str:
        return '\t'.join(str(x) for x in self.to_list())


def variant_vcf_records(variants: dict) -> list[VCFRecord]:
    """ One record per VariantKey in {ref_name: {VariantKey: {Variant}}} """

    records = []
    for _, var_map in variants.items():
        for key, var_set in var_map.items():
            # canonical allele order, set iteration order is arbitrary
            var_lst = sorted(var_set, key=lambda x: (x.alt, x.kind))
            records.append(VCFRecord(chrom=key.ref_name,
                                     pos=key.pos,
                                     ref=key.ref,
                                     alts=tuple(x.alt for x in var_lst),
                                     types=tuple(x.kind for x in var_lst)))

    return records


def sort_records(records: list[VCFRecord]) -> list[VCFRecord]:
    """ Sort by chromosome (byte-wise) and position, drop exact duplicates """

    sorted_records = []
    for record in sorted(records, key=VCFRecord.sort_key):
        if len(sorted_records) > 0 and sorted_records[-1] == record:
            continue
        sorted_records.append(record)

    n_dup = len(records) - len(sorted_records)
    if n_dup > 0:
        logger.debug(f'Remove {n_dup} duplicated records')

    return sorted_records


def assemble_records(variants: dict) -> list[VCFRecord]:
    """ Variant map to sorted, deduplicated VCF records """

    return sort_records(variant_vcf_records(variants))


def records_to_dataframe(records: list[VCFRecord]) -> pd.DataFrame:

    return pd.DataFrame([x.to_list() for x in records], columns=VCF_COLUMNS)


def make_header(reference: str, contigs: dict[str, int] = None) -> pysam.VariantHeader:
    """ VCF header with file date, reference, contigs and INFO/TYPE """

    header = pysam.VariantHeader()
    header.add_line(f'##fileDate={datetime.now(timezone.utc).strftime("%Y%m%d")}')
    header.add_line(f'##reference={reference}')
    if contigs is not None:
        for name, length in contigs.items():
            header.contigs.add(name, length=length)
    header.add_line('##INFO=<ID=TYPE,Number=A,Type=String,Description="Type of each allele (snv, ins, del, mnp)">')

    return header


def path_contigs(collection: PathCollection, names) -> dict[str, int]:
    """ Contig lengths of reference paths, in byte-wise name order """

    return {name: collection.lengths[collection.index(name)]
            for name in sorted(names, key=str.encode)}


def write_vcf(file_vcf: str, header: pysam.VariantHeader, records: list[VCFRecord]) -> None:
    """ Write header and records as plain text VCF """

    df = records_to_dataframe(records)
    with open(file_vcf, 'w') as f:
        f.write(str(header))
        df.to_csv(f, sep='\t', header=False, index=False, lineterminator='\n')

    logger.info(f'Write {len(records)} variants to {file_vcf}')
