"""Infer expected ploidy for a genomic region from existing variant calls.

Handles recalling in mixed diploid and haploid regions, like human
mitochondrial and sex chromosomes, by matching the ploidy of genotypes
already called in the inputs.
"""
import itertools

import pysam

from bcbio_recall.log import logger
from bcbio_recall.pipeline import region as pregion

# Only a prefix of each file is examined; ploidy is assumed consistent within a region
MAX_RECORDS = 5

def _record_ploidies(rec):
    """Number of alleles in each called genotype of a record.
    """
    out = []
    for sample in rec.samples.values():
        if "GT" not in sample:
            continue
        gt = sample["GT"]
        if gt:
            out.append(len(gt))
    return out

def get_ploidy_file(vcf_file, region, max_records=MAX_RECORDS):
    """Retrieve ploidies from the first genotype lines of a VCF file in a region.
    """
    with pysam.VariantFile(vcf_file) as vcf_reader:
        try:
            recs = list(itertools.islice(vcf_reader.fetch(region.chrom, region.start, region.end),
                                         max_records))
        # contig not present in the index, so no records
        except ValueError:
            recs = []
        return list(itertools.chain.from_iterable(_record_ploidies(rec) for rec in recs))

def get_existing_ploidy(vcf_files, region):
    """Check ploidy in a region, returning the maximum over all input files.

    Returns None when no genotypes are found, leaving callers to use their defaults.
    """
    ploidies = list(itertools.chain.from_iterable(get_ploidy_file(f, region) for f in vcf_files))
    if ploidies:
        ploidy = max(ploidies)
        logger.debug("Inferred ploidy %s in region %s" % (ploidy, pregion.to_samtools(region)))
        return ploidy
