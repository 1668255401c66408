"""Genomic regions used to split squaring work for parallel processing.

Regions are half-open, zero-based (chrom, start, end) tuples matching BED
coordinates. They convert to the 1-based samtools style for bcftools and
samtools and to the zero-based style FreeBayes expects.
"""
import collections
import os

from bcbio_recall.bam import ref


class Region(collections.namedtuple("Region", ["chrom", "start", "end"])):
    __slots__ = ()

    def __str__(self):
        return to_samtools(self)

def to_samtools(region):
    chrom, start, end = region
    return "%s:%s-%s" % (chrom, start + 1, end)

def to_freebayes(region):
    chrom, start, end = region
    return "%s:%s..%s" % (chrom, start, end)

def to_safestr(region):
    return "_".join([str(x) for x in region])

def parse(region_str, ref_file=None, config=None):
    """Parse a samtools style region (chr1:100-200) or bare contig name.

    Bare contigs need the reference file to retrieve the contig length.
    """
    region_str = region_str.strip().replace(",", "")
    if ":" in region_str:
        chrom, coords = region_str.rsplit(":", 1)
        try:
            start, end = [int(x) for x in coords.split("-")]
        except ValueError:
            raise ValueError("Could not parse genomic region: %s" % region_str)
        if start < 1 or end < start:
            raise ValueError("Invalid coordinates in genomic region: %s" % region_str)
        return Region(chrom, start - 1, end)
    else:
        sizes = contig_sizes(ref_file, config) if ref_file else {}
        if region_str not in sizes:
            raise ValueError("Did not find contig %s in reference %s" % (region_str, ref_file))
        return Region(region_str, 0, sizes[region_str])

def contig_sizes(ref_file, config=None):
    return collections.OrderedDict((c.name, c.size) for c in ref.file_contigs(ref_file, config))

def from_bed(bed_file):
    """Read regions from a BED file, skipping track and browser lines.
    """
    import pybedtools
    return [Region(r.chrom, int(r.start), int(r.stop)) for r in pybedtools.BedTool(bed_file)
            if not r.chrom.startswith(("track", "browser"))]

def get_regions(ref_file, config):
    """Retrieve regions to process from the configured region or the reference genome.

    The configured region can be a BED file or a samtools style region. Without one,
    each contig in the reference is a separate region.
    """
    region = config.get("algorithm", {}).get("region")
    if region and os.path.isfile(region):
        regions = from_bed(region)
    elif region:
        regions = [parse(region, ref_file, config)]
    else:
        regions = [Region(name, 0, size) for name, size in contig_sizes(ref_file, config).items()]
    return sort_by_ref(regions, ref_file, config)

def sort_by_ref(regions, ref_file, config=None):
    """Sort regions by reference contig order, then coordinates.
    """
    contig_order = {}
    for i, name in enumerate(contig_sizes(ref_file, config).keys()):
        contig_order[name] = i
    missing = sorted(set(r.chrom for r in regions) - set(contig_order.keys()))
    if missing:
        raise ValueError("Regions contain contigs not found in reference %s: %s" % (ref_file, missing))
    return sorted(regions, key=lambda r: (contig_order[r.chrom], r.start, r.end))
