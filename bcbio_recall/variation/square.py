"""Perform squaring off of variant call sets, recalling at all sample positions.

This converts a merged dataset with no calls at positions not assessed in a
sample into a fully 'square' merged callset with reference calls at positions
without evidence for a variant, distinguishing true no-calls from reference
calls. Handles the N+1 problem of variant calling by recalling each sample at
positions found variable in any of the input samples.

Work happens per region, then per sample within each region:
  - Identify all called variants from all samples in the region.
  - For each sample, square off with `sample_by_region`.
  - Merge all sample variant files in the region together.
"""
import functools
import hashlib
import os

import yaml

from bcbio_recall import bam, utils
from bcbio_recall.distributed import multi, split
from bcbio_recall.distributed.transaction import file_transaction, tx_tmpdir
from bcbio_recall.log import logger
from bcbio_recall.pipeline import config_utils
from bcbio_recall.pipeline import region as pregion
from bcbio_recall.provenance import versioncheck
from bcbio_recall.variation import ploidy, recall, vcfutils

STAGES = ["region", "existing", "needcall", "recall", "nocall"]

class SetupError(Exception):
    """Problem with inputs or installed programs found before any region work.
    """
    pass

class SquareError(RuntimeError):
    """Failure squaring off a single sample in a region.
    """
    def __init__(self, sample, region, msg):
        self.sample = sample
        self.region = region
        super(SquareError, self).__init__("Failed squaring off sample %s in region %s: %s" %
                                          (sample, pregion.to_samtools(region), msg))

# ## Per-sample squaring

def _stage_files(out_file):
    work_dir = utils.safe_makedir("%s-work" % utils.file_root(out_file))
    return {x: os.path.join(work_dir, "%s.vcf.gz" % x) for x in STAGES}

def sample_by_region(sample, vcf_file, bam_file, union_vcf, region, ref_file, out_file,
                     backend, cur_ploidy, config):
    """Square off a specific sample in a genomic region, given all possible variants.

    - Subset to the current variant region.
    - Identify missing uncalled variants: create files of existing and missing variants.
    - Recall at missing positions with the configured caller, adding no-calls
      for positions the caller skips.
    - Merge original and recalled variants.

    Each step writes a separate file in a work directory and is skipped when
    its output exists, so re-runs continue from the last finished step.
    """
    fnames = _stage_files(out_file)
    if not utils.file_exists(out_file):
        vcfutils.subset_sample_region(vcf_file, sample, region, fnames["region"], config,
                                      only_called=True)
        vcfutils.intersect_variants(fnames["region"], union_vcf, fnames["existing"], config)
        vcfutils.unique_variants(union_vcf, fnames["region"], fnames["needcall"], config)
        to_combine = [fnames["existing"]]
        if vcfutils.vcf_has_variants(fnames["needcall"]):
            if not utils.file_exists(fnames["recall"]):
                with tx_tmpdir(config, os.path.dirname(out_file)) as tmp_dir:
                    region_bam_file = bam.subset_in_region(bam_file, ref_file, region, tmp_dir, config)
                    backend.recall(sample, region, fnames["needcall"], region_bam_file, ref_file,
                                   fnames["recall"], cur_ploidy)
            to_combine.append(fnames["recall"])
            vcfutils.nocall_missing(fnames["needcall"], fnames["recall"], sample, fnames["nocall"],
                                    config, cur_ploidy)
            if vcfutils.vcf_has_variants(fnames["nocall"]):
                to_combine.append(fnames["nocall"])
        else:
            logger.debug("No missing positions to recall for %s in %s" %
                         (sample, pregion.to_samtools(region)))
        vcfutils.combine_variant_files(to_combine, out_file, config)
    return vcfutils.bgzip_and_index(out_file, config)

def sample_by_region_prep(sample, vcf_file, bam_file, union_vcf, region, ref_file, out_dir,
                          backend, cur_ploidy, config):
    """Prepare for squaring off a sample in a region, setup out file and check conditions.

    We only can perform squaring off with a BAM or CRAM file for the sample. Without
    one, existing calls are passed through and missing positions stay missing.
    """
    out_file = os.path.join(out_dir, "%s-%s.vcf.gz" % (sample, pregion.to_safestr(region)))
    try:
        if bam_file is None:
            out_file = vcfutils.subset_sample_region(vcf_file, sample, region, out_file, config)
        elif not utils.file_exists(out_file):
            out_file = sample_by_region(sample, vcf_file, bam_file, union_vcf, region, ref_file,
                                        out_file, backend, cur_ploidy, config)
    except Exception as e:
        raise SquareError(sample, region, str(e)) from e
    return sample, out_file

# ## Per-region squaring

def get_region_dirs(dirs, region):
    region_square_dir = utils.safe_makedir(os.path.join(dirs["square"], region.chrom,
                                                        pregion.to_safestr(region)))
    return region_square_dir

def by_region(vcf_files, bam_map, region, ref_file, dirs, out_file, backend, config, run_parallel):
    """Square off a genomic region, identifying variants from all samples and recalling at uncalled positions.

    Samples are squared in parallel and merged in sample name order, keeping
    output columns reproducible independent of completion order. Any sample
    failure stops the region.
    """
    if not utils.file_exists(out_file):
        union_vcf = vcfutils.union_variants(
            vcf_files, region,
            os.path.join(utils.safe_makedir(os.path.join(dirs["union"], region.chrom)),
                         "union-%s.vcf.gz" % pregion.to_safestr(region)),
            config)
        cur_ploidy = ploidy.get_existing_ploidy(vcf_files, region)
        region_square_dir = get_region_dirs(dirs, region)
        args = [(sample, vcf_file, bam_map.get(sample), union_vcf, region, ref_file,
                 region_square_dir, backend, cur_ploidy, config)
                for sample, vcf_file in vcfutils.samples_to_files(vcf_files)]
        recall_vcfs = [x[1] for x in sorted(run_parallel(sample_by_region_prep, args))]
        vcfutils.merge_variant_files(recall_vcfs, out_file, region, config)
    return vcfutils.bgzip_and_index(out_file, config)

# ## Sample to alignment file mapping

def _sample_to_bam_map(bam_files, ref_file):
    """Prepare a map of sample names to BAM or CRAM files.

    Rejects samples present in multiple alignment files, which would otherwise
    silently lose evidence from all but one file.
    """
    out = {}
    dups = {}
    for b in bam_files:
        for s in bam.sample_names(b, ref_file):
            if s in out and out[s] != b:
                dups.setdefault(s, [out[s]]).append(b)
            out[s] = b
    if dups:
        raise ValueError("Samples found in multiple alignment files: %s" %
                         "; ".join("%s in %s" % (s, ", ".join(fs)) for s, fs in sorted(dups.items())))
    return out

def get_samplemap_cache_file(bam_files, cache_dir):
    """Cache file name, keyed on the first alignment file and the total number of files.
    """
    first = bam_files[0]
    fingerprint = hashlib.md5(os.path.abspath(first).encode("utf-8")).hexdigest()[:8]
    return os.path.join(cache_dir, "%s-%s-%s-samplemap.yaml" %
                        (os.path.basename(utils.file_root(first)), fingerprint, len(bam_files)))

def sample_to_bam_map(bam_files, ref_file, cache_dir, config=None):
    """Prepare a map of sample names to BAM files, caching results for re-runs.

    Reading headers for large numbers of alignment files is slow, so the map is
    stored once per set of input files.
    """
    if not bam_files:
        return {}
    cache_file = get_samplemap_cache_file(bam_files, cache_dir)
    if utils.file_exists(cache_file):
        with open(cache_file) as in_handle:
            return yaml.safe_load(in_handle)
    bam_map = _sample_to_bam_map(bam_files, ref_file)
    with file_transaction(config, cache_file) as tx_cache_file:
        with open(tx_cache_file, "w") as out_handle:
            yaml.safe_dump(bam_map, out_handle, default_flow_style=False)
    return bam_map

# ## Top level squaring

def _prep_vcf_inputs(vcf_files, inprep_dir, config):
    """Ensure inputs are bgzipped and indexed, preparing copies when needed.
    """
    out = []
    for f in vcf_files:
        if f.endswith(".vcf.gz") and utils.file_uptodate(f + ".tbi", f):
            out.append(f)
        else:
            out.append(vcfutils.bgzip_and_index(f, config, out_dir=inprep_dir))
    return out

def get_out_file(out_file):
    """Final output is always bgzipped.
    """
    return out_file if out_file.endswith(".gz") else out_file + ".gz"

def combine_vcfs(orig_vcf_files, bam_files, ref_file, out_file, config):
    """Combine VCF files with squaring off by recalling at uncalled variant positions.
    """
    out_file = get_out_file(os.path.abspath(out_file))
    base_dir = os.path.dirname(out_file)
    dirs = {x: utils.safe_makedir(os.path.join(base_dir, x)) for x in ["union", "square", "inprep"]}
    try:
        bam_map = sample_to_bam_map(bam_files, ref_file, dirs["inprep"], config)
        versioncheck.testall(config)
        vcf_files = _prep_vcf_inputs(orig_vcf_files, dirs["inprep"], config)
        vcfutils.check_samples_nodups(vcf_files)
        backend = recall.get_backend(config)
    except (ValueError, OSError, config_utils.CmdNotFound) as e:
        raise SetupError(str(e)) from e
    no_bam = sorted(s for s, _ in vcfutils.samples_to_files(vcf_files) if s not in bam_map)
    if no_bam:
        logger.warn("No alignment file found for samples, retaining existing calls without recalling: %s"
                    % ", ".join(no_bam))
    run_parallel = multi.runner(config_utils.get_num_cores(config))
    region_fn = functools.partial(_square_region, bam_map=bam_map, ref_file=ref_file, dirs=dirs,
                                  backend=backend, config=config, run_parallel=run_parallel)
    return split.prep_by_region(region_fn, vcf_files, ref_file, out_file, config, run_parallel)

def _square_region(vcf_files, region, region_out_file, bam_map, ref_file, dirs, backend, config,
                   run_parallel):
    return by_region(vcf_files, bam_map, region, ref_file, dirs, region_out_file, backend, config,
                     run_parallel)
