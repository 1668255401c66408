"""Split squaring work by genomic regions and combine regional outputs.

This tackles parallel work within the context of a run, where we split
across regions like chromosomes or BED intervals. Following splitting,
individual regions are run and then combined back into a summarized output
file in reference order.
"""
import os

from bcbio_recall import utils
from bcbio_recall.log import logger
from bcbio_recall.pipeline import region as pregion
from bcbio_recall.variation import vcfutils

def get_region_outfile(out_file, region):
    """Name of the regional output file, within a merge directory next to the final output.
    """
    base, ext = utils.splitext_plus(os.path.basename(out_file))
    merge_dir = os.path.join(os.path.dirname(os.path.abspath(out_file)), "merge", region.chrom)
    return os.path.join(merge_dir, "%s-%s%s" % (base, pregion.to_safestr(region), ext))

def regions_with_variants(vcf_files, regions):
    """Retain only regions where at least one input file has a record.
    """
    return [r for r in regions if any(vcfutils.region_has_variants(f, r) for f in vcf_files)]

def prep_by_region(region_fn, vcf_files, ref_file, out_file, config, run_parallel):
    """Split inputs by region, run region_fn in parallel and concatenate the results.

    region_fn takes the input VCF files, a region and the output file for the
    region, returning the finished regional VCF file.
    """
    if not utils.file_exists(out_file):
        all_regions = pregion.get_regions(ref_file, config)
        regions = regions_with_variants(vcf_files, all_regions)
        logger.info("Squaring off %s regions with variants, out of %s total" %
                    (len(regions), len(all_regions)))
        args = []
        for region in regions:
            region_out_file = get_region_outfile(out_file, region)
            utils.safe_makedir(os.path.dirname(region_out_file))
            args.append((vcf_files, region, region_out_file))
        region_files = run_parallel(region_fn, args)
        if region_files:
            vcfutils.concat_variant_files(region_files, out_file, config)
        else:
            samples = sorted(set(s for s, _ in vcfutils.samples_to_files(vcf_files)))
            vcfutils.write_empty_vcf(out_file, config, samples)
    return vcfutils.bgzip_and_index(out_file, config)
