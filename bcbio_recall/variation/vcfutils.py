"""Utilities for manipulating variant files in standard VCF format.

Squaring off works on bgzipped, tabix indexed VCFs. Every function producing
a VCF here is idempotent: it skips work when the output is already present,
and writes through a file transaction so partial outputs never appear.
"""
from collections import defaultdict
import hashlib
import os

import pysam

from bcbio_recall import utils
from bcbio_recall.distributed.transaction import file_transaction
from bcbio_recall.pipeline import config_utils, tools
from bcbio_recall.pipeline import region as pregion
from bcbio_recall.provenance import do

# ## General utilities

def get_samples(in_file):
    """Retrieve samples present in a VCF file
    """
    with utils.open_gzipsafe(in_file) as in_handle:
        for line in in_handle:
            if line.startswith("#CHROM"):
                parts = line.strip().split("\t")
                return parts[9:]
    raise ValueError("Did not find sample header in VCF file %s" % in_file)

def is_vcf(in_file):
    return in_file.endswith((".vcf", ".vcf.gz"))

def write_empty_vcf(out_file, config=None, samples=None):
    needs_bgzip = False
    if out_file.endswith(".vcf.gz"):
        needs_bgzip = True
        out_file = out_file.replace(".vcf.gz", ".vcf")
    with open(out_file, "w") as out_handle:
        format_samples = ("\tFORMAT\t" + "\t".join(samples)) if samples else ""
        out_handle.write("##fileformat=VCFv4.2\n"
                         "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO%s\n" % (format_samples))
    if needs_bgzip:
        return bgzip_and_index(out_file, config or {})
    else:
        return out_file

def vcf_has_variants(in_file):
    if os.path.exists(in_file):
        with utils.open_gzipsafe(in_file) as in_handle:
            for line in in_handle:
                if line.strip() and not line.startswith("#"):
                    return True
    return False

def region_has_variants(in_file, region):
    """Check for any records in an indexed VCF file within a region.
    """
    with pysam.VariantFile(in_file) as vcf_reader:
        try:
            for _ in vcf_reader.fetch(region.chrom, region.start, region.end):
                return True
        # contig not present in the index, so no records
        except ValueError:
            return False
    return False

def check_samples_nodups(fnames):
    """Ensure a set of input VCFs do not have duplicate samples.
    """
    counts = defaultdict(list)
    for f in fnames:
        for s in get_samples(f):
            counts[s].append(f)
    duplicates = sorted(s for s, fs in counts.items() if len(fs) > 1)
    if duplicates:
        raise ValueError("Duplicate samples found in input VCF files: %s" %
                         "; ".join("%s in %s" % (s, ", ".join(counts[s])) for s in duplicates))

def samples_to_files(fnames):
    """Pair each sample with the VCF file it is called in, ordered by sample name.
    """
    out = []
    for f in fnames:
        for s in get_samples(f):
            out.append((s, f))
    return sorted(set(out))

# ## Subsetting and intersections

def subset_sample_region(in_file, sample, region, out_file, config, only_called=False):
    """Subset the input file to the given region and sample.

    only_called removes records where this sample has a missing genotype, leaving
    just the positions the sample already has calls for.
    """
    if not utils.file_exists(out_file):
        with file_transaction(config, out_file) as tx_out_file:
            bcftools = config_utils.get_program("bcftools", config)
            cmd = [bcftools, "view", "-O", "z", "-o", tx_out_file,
                   "-r", pregion.to_samtools(region), "-s", sample]
            if only_called:
                cmd += ["-e", 'GT="mis"']
            cmd += [bgzip_and_index(in_file, config)]
            do.run(cmd, "Subset to sample and region", sample, pregion.to_samtools(region))
    return bgzip_and_index(out_file, config)

def intersect_variants(in_file, cmp_file, out_file, config):
    """Retrieve VCF variants from in_file at positions also present in cmp_file.
    """
    return _run_isec(in_file, cmp_file, out_file, config, ["-n", "=2"],
                     "Identify existing variants")

def unique_variants(in_file, cmp_file, out_file, config):
    """Retrieve variants from in_file at positions not present in cmp_file.
    """
    return _run_isec(in_file, cmp_file, out_file, config, ["-C"],
                     "Identify uncalled variants")

def _run_isec(in_file, cmp_file, out_file, config, isec_args, descr):
    """Position based intersection with bcftools isec, writing records from in_file.
    """
    if not utils.file_exists(out_file):
        with file_transaction(config, out_file) as tx_out_file:
            bcftools = config_utils.get_program("bcftools", config)
            cmd = [bcftools, "isec"] + isec_args + ["-w", "1", "-c", "all", "-O", "z",
                                                    "-o", tx_out_file,
                                                    bgzip_and_index(in_file, config),
                                                    bgzip_and_index(cmp_file, config)]
            do.run(cmd, "%s: %s" % (descr, os.path.basename(in_file)))
    return bgzip_and_index(out_file, config)

def nocall_missing(in_file, called_file, sample, out_file, config, ploidy=None):
    """Write no-call records for sample at positions in in_file missing from called_file.

    Callers emit nothing at positions without read coverage. These positions
    get explicit missing genotypes.
    """
    if not utils.file_exists(out_file):
        with pysam.VariantFile(called_file) as called_vcf:
            called = set((rec.chrom, rec.pos) for rec in called_vcf)
        with file_transaction(config, out_file) as tx_out_file:
            with pysam.VariantFile(in_file) as in_vcf:
                header = pysam.VariantHeader()
                for contig in in_vcf.header.contigs.values():
                    header.contigs.add(contig.name, length=contig.length)
                header.formats.add("GT", 1, "String", "Genotype")
                header.add_sample(sample)
                with pysam.VariantFile(tx_out_file, "wz", header=header) as out_vcf:
                    for rec in in_vcf:
                        if (rec.chrom, rec.pos) not in called:
                            new_rec = out_vcf.new_record(contig=rec.chrom, start=rec.start, stop=rec.stop,
                                                         alleles=rec.alleles)
                            new_rec.samples[sample]["GT"] = (None,) * (ploidy or 2)
                            out_vcf.write(new_rec)
    return bgzip_and_index(out_file, config)

# ## Merging of variant files

def union_variants(orig_files, region, out_file, config):
    """Create a sites only union of all variant positions in a region.
    """
    if not utils.file_exists(out_file):
        with file_transaction(config, out_file) as tx_out_file:
            bcftools = config_utils.get_program("bcftools", config)
            prep_files = [bgzip_and_index(x, config) for x in orig_files]
            region_str = pregion.to_samtools(region)
            if len(prep_files) == 1:
                cmds = [[bcftools, "view", "-G", "-r", region_str, "-O", "z", prep_files[0]]]
            else:
                cmds = [[bcftools, "merge", "--force-samples", "-m", "none", "-r", region_str,
                         "-O", "u"] + prep_files,
                        [bcftools, "view", "-G", "-O", "z", "-"]]
            do.run_pipeline(cmds, tx_out_file, "Union of variant positions", region=region_str)
    return bgzip_and_index(out_file, config)

def combine_variant_files(orig_files, out_file, config):
    """Combine VCF files from the same sample into a single position sorted output file.
    """
    if not utils.file_exists(out_file):
        with file_transaction(config, out_file) as tx_out_file:
            exist_files = [bgzip_and_index(x, config) for x in orig_files if os.path.exists(x)]
            bcftools = config_utils.get_program("bcftools", config)
            cmd = [bcftools, "concat", "-a", "-D", "-O", "z", "-o", tx_out_file] + exist_files
            do.run(cmd, "Combine variant files")
    return bgzip_and_index(out_file, config)

def merge_variant_files(orig_files, out_file, region, config):
    """Combine multiple VCF files with different samples into a single output file.

    Sample columns in the output follow the order of orig_files.
    """
    if not utils.file_exists(out_file):
        with file_transaction(config, out_file) as tx_out_file:
            prep_files = [bgzip_and_index(x, config) for x in orig_files]
            if len(prep_files) == 1:
                utils.copy_plus(prep_files[0], tx_out_file)
            else:
                input_vcf_file = "%s-files.txt" % utils.splitext_plus(tx_out_file)[0]
                with open(input_vcf_file, "w") as out_handle:
                    for fname in prep_files:
                        out_handle.write(fname + "\n")
                bcftools = config_utils.get_program("bcftools", config)
                cmd = [bcftools, "merge", "-O", "z", "-o", tx_out_file, "-r", pregion.to_samtools(region),
                       "--file-list", input_vcf_file]
                do.run(cmd, "Merge variants", region=pregion.to_samtools(region))
    return bgzip_and_index(out_file, config)

def concat_variant_files(orig_files, out_file, config):
    """Concatenate regional variant files, already in reference order, into a final output.
    """
    if not utils.file_exists(out_file):
        with file_transaction(config, out_file) as tx_out_file:
            prep_files = [bgzip_and_index(x, config) for x in orig_files]
            if len(prep_files) == 1:
                utils.copy_plus(prep_files[0], tx_out_file)
            else:
                in_list = "%s-files.list" % utils.splitext_plus(tx_out_file)[0]
                with open(in_list, "w") as out_handle:
                    out_handle.write("\n".join(prep_files) + "\n")
                bcftools = config_utils.get_program("bcftools", config)
                cmd = [bcftools, "concat", "-a", "-O", "z", "-o", tx_out_file, "--file-list", in_list]
                do.run(cmd, "bcftools concat variants")
    return bgzip_and_index(out_file, config)

# ## VCF preparation

def bgzip_and_index(in_file, config=None, remove_orig=True, out_dir=None):
    """bgzip and tabix index an input file.

    With out_dir, writes the bgzipped file there and leaves the original untouched.
    """
    if config is None:
        config = {}
    out_file = in_file if in_file.endswith(".gz") else in_file + ".gz"
    if out_dir:
        remove_orig = False
        out_file = get_prep_file(in_file, out_dir)
    if (not utils.file_exists(out_file) or not os.path.lexists(out_file)
          or (utils.file_exists(in_file) and not utils.file_uptodate(out_file, in_file))):
        assert not in_file == out_file, "Input file is bgzipped but not found: %s" % in_file
        assert os.path.exists(in_file), "Input file %s not found" % in_file
        if not utils.file_uptodate(out_file, in_file):
            with file_transaction(config, out_file) as tx_out_file:
                if in_file.endswith(".gz"):
                    bcftools = config_utils.get_program("bcftools", config)
                    cmds = [[bcftools, "view", "-O", "z", in_file]]
                else:
                    cmds = [tools.get_bgzip_cmd(config) + ["-c", in_file]]
                do.run_pipeline(cmds, tx_out_file, "bgzip %s" % os.path.basename(in_file))
            if remove_orig:
                try:
                    os.remove(in_file)
                except OSError:  # Handle cases where run in parallel and file has been deleted
                    pass
    tabix_index(out_file, config)
    return out_file

def get_prep_file(in_file, out_dir):
    """Name a bgzipped copy of in_file in out_dir, unique to its full input path.
    """
    fingerprint = hashlib.md5(os.path.abspath(in_file).encode("utf-8")).hexdigest()[:8]
    return os.path.join(out_dir, "%s-%s%s" % (os.path.basename(utils.file_root(in_file)), fingerprint,
                                              _bgzip_ext(in_file)))

def _bgzip_ext(in_file):
    ext = utils.splitext_plus(in_file)[1]
    return ext if ext.endswith(".gz") else ext + ".gz"

def tabix_index(in_file, config, preset="vcf"):
    """Index a file using tabix.
    """
    in_file = os.path.abspath(in_file)
    out_file = in_file + ".tbi"
    if not utils.file_exists(out_file) or not utils.file_uptodate(out_file, in_file):
        # Remove old index files to prevent linking into tx directory
        utils.remove_safe(out_file)
        with file_transaction(config, out_file) as tx_out_file:
            tabix = tools.get_tabix_cmd(config)
            tx_in_file = os.path.splitext(tx_out_file)[0]
            utils.symlink_plus(in_file, tx_in_file)
            do.run(tabix + ["-f", "-p", preset, tx_in_file], "tabix index %s" % os.path.basename(in_file))
    return out_file
