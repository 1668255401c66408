"""Functionality to query and extract information from aligned BAM and CRAM files.
"""
import os

import pysam

from bcbio_recall import utils
from bcbio_recall.distributed.transaction import file_transaction
from bcbio_recall.pipeline import config_utils
from bcbio_recall.provenance import do

ALIGN_EXTS = (".bam", ".cram")

def is_cram(in_file):
    return in_file.endswith(".cram")

def is_alignment_file(in_file):
    return in_file.endswith(ALIGN_EXTS)

def open_samfile(in_file, ref_file=None):
    if is_cram(in_file):
        return pysam.AlignmentFile(in_file, "rc", reference_filename=ref_file, check_sq=False)
    else:
        return pysam.AlignmentFile(in_file, "rb", check_sq=False)

def sample_names(in_file, ref_file=None):
    """Get all sample names from read groups in a BAM or CRAM file header.

    CRAM headers are read without decoding reads, but pysam still needs the
    reference available for the file to open cleanly.
    """
    if not is_alignment_file(in_file):
        raise ValueError("Unexpected alignment file type, need BAM or CRAM: %s" % in_file)
    with open_samfile(in_file, ref_file) as in_pysam:
        header = in_pysam.header.to_dict()
    out = []
    for rg in header.get("RG", []):
        if rg.get("SM") and rg["SM"] not in out:
            out.append(rg["SM"])
    return out

def index(in_file, config, check_timestamp=True):
    """Index a BAM or CRAM file, skipping if index present.
    """
    assert is_alignment_file(in_file), "%s in not a BAM or CRAM file" % in_file
    index_file = "%s.%s" % (in_file, "crai" if is_cram(in_file) else "bai")
    if check_timestamp:
        idx_exists = utils.file_uptodate(index_file, in_file)
    else:
        idx_exists = utils.file_exists(index_file)
    if not idx_exists:
        # Remove old index files and re-run to prevent linking into tx directory
        utils.remove_safe(index_file)
        samtools = config_utils.get_program("samtools", config)
        with file_transaction(config, index_file) as tx_index_file:
            cmd = [samtools, "index", in_file, tx_index_file]
            do.run(cmd, "Index alignment file: %s" % os.path.basename(in_file))
    return index_file

def subset_in_region(in_file, ref_file, region, out_dir, config):
    """Extract reads in a region into an indexed BAM file for recalling.

    CRAM inputs get decoded with the reference so callers only need BAM support.
    """
    from bcbio_recall.pipeline import region as pregion
    out_file = os.path.join(out_dir, "%s-%s.bam" % (utils.file_root(os.path.basename(in_file)),
                                                   pregion.to_safestr(region)))
    if not utils.file_exists(out_file):
        index(in_file, config)
        samtools = config_utils.get_program("samtools", config)
        with file_transaction(config, out_file) as tx_out_file:
            cmd = [samtools, "view", "-b", "-o", tx_out_file]
            if is_cram(in_file):
                cmd += ["-T", ref_file]
            cmd += [in_file, pregion.to_samtools(region)]
            do.run(cmd, "Subset alignments to region", region=pregion.to_samtools(region))
    index(out_file, config)
    return out_file
