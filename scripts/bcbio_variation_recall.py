#!/usr/bin/env python -Es
"""Square off variant calls from multiple samples by recalling at all variant positions.

Combines VCF files from multiple samples into a merged callset where every
sample has a reference, variant or no-call genotype at every position called
in any sample, recalling from BAM or CRAM alignments.

Usage:
  bcbio_variation_recall.py square <out-file> <ref-file> <vcf|bam|cram|list-files>...
     -c number of cores to use for parallel processing
     -m caller to use for recalling (primary, alternate, pileup)
     -r region to subset: chr:start-end, a contig name or a BED file
"""
import sys

from bcbio_recall.pipeline.main import main

if __name__ == "__main__":
    main(sys.argv[1:])
