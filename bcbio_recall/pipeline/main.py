"""Main entry point for squaring off variant calls from multiple samples.

Handles command line parsing, input classification and validation, then hands
off to the squaring pipeline.

Usage:
  bcbio_variation_recall.py square [options] <out-file> <ref-file> <vcf|bam|cram|list-files>...
"""
import argparse
import os
import sys

from bcbio_recall import bam, log, utils
from bcbio_recall.log import logger
from bcbio_recall.pipeline import config_utils, version
from bcbio_recall.variation import square, vcfutils

class ArgumentParser(argparse.ArgumentParser):
    """Report usage errors with an exit code of 1, matching input validation failures.
    """
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, "%s: error: %s\n" % (self.prog, message))

def add_subparser(subparsers):
    parser = subparsers.add_parser(
        "square",
        help=("Combine VCF files from multiple samples, recalling at positions "
              "uncalled in a sample with alignment evidence"))
    parser.add_argument(
        "out_file", metavar="out-file",
        help="Output VCF file of squared off calls, bgzipped")
    parser.add_argument(
        "ref_file", metavar="ref-file",
        help="Reference genome FASTA file, with a samtools faidx index")
    parser.add_argument(
        "inputs", nargs="+",
        help=("Input VCF, BAM or CRAM files, or text files listing one input per line"))
    parser.add_argument(
        "-c", "--cores", type=int, default=1,
        help="Number of cores to use for parallel processing. Defaults to 1")
    parser.add_argument(
        "-m", "--caller", default="primary",
        help=("Variant caller to use for recalling: primary (freebayes), "
              "alternate (platypus) or pileup (samtools). Defaults to primary"))
    parser.add_argument(
        "-r", "--region",
        help=("Genomic region to subset, as chr:start-end, a contig name "
              "or a BED file of regions"))
    parser.add_argument(
        "--sysconfig",
        help="YAML configuration file with program resources and logging details")
    parser.set_defaults(usage=parser.format_usage())
    return parser

def parse_cl_args(in_args):
    parser = ArgumentParser(description="Recall variant calls across multiple samples, squaring off "
                                        "merged variant files.")
    parser.add_argument("-v", "--version", action="version",
                        version="%(prog)s " + version.__version__)
    subparsers = parser.add_subparsers(dest="sub_cmd", parser_class=ArgumentParser)
    add_subparser(subparsers)
    if len(in_args) == 0:
        parser.print_help()
        sys.exit(0)
    return parser, parser.parse_args(in_args)

# ## Input classification

def _read_list_file(list_file):
    """Retrieve input files from a text file, relative to the list file location.
    """
    out = []
    base_dir = os.path.dirname(os.path.abspath(list_file))
    with open(list_file) as in_handle:
        for line in in_handle:
            line = line.strip()
            if line and not line.startswith("#"):
                out.append(utils.get_abspath(line, base_dir))
    return out

def expand_inputs(inputs):
    """Expand list files into the individual VCF, BAM and CRAM inputs they reference.
    """
    out = []
    for f in inputs:
        if vcfutils.is_vcf(f) or bam.is_alignment_file(f):
            out.append(os.path.abspath(f))
        elif os.path.isfile(f):
            out.extend(expand_inputs(_read_list_file(f)))
        else:
            out.append(os.path.abspath(f))
    return out

def classify_inputs(inputs):
    """Separate inputs into VCF and alignment files, reporting missing or unexpected files.
    """
    vcf_files, bam_files, errors = [], [], []
    for f in expand_inputs(inputs):
        if not os.path.exists(f):
            errors.append("Input file not found: %s" % f)
        elif vcfutils.is_vcf(f):
            vcf_files.append(f)
        elif bam.is_alignment_file(f):
            bam_files.append(f)
        else:
            errors.append("Unexpected input type, need VCF, BAM or CRAM: %s" % f)
    if not vcf_files and not errors:
        errors.append("No input VCF files found in inputs: %s" % ", ".join(inputs))
    return vcf_files, bam_files, errors

def _check_ref_file(ref_file):
    if not os.path.isfile(ref_file):
        return ["Reference genome file not found: %s" % ref_file]
    return []

# ## Running

def _report_errors(errors, args):
    """Write problems found in inputs or configuration with usage, returning the exit code.
    """
    for msg in errors:
        sys.stderr.write("%s\n" % msg)
    sys.stderr.write("\n%s" % getattr(args, "usage", ""))
    return 1

def run_square(args):
    """Validate inputs and configuration then square off the input variant files.

    Returns the command line exit code.
    """
    vcf_files, bam_files, errors = classify_inputs(args.inputs)
    errors += _check_ref_file(args.ref_file)
    sys_config = None
    if args.sysconfig:
        if not os.path.isfile(args.sysconfig):
            errors.append("System configuration file not found: %s" % args.sysconfig)
        else:
            sys_config = config_utils.load_system_config(args.sysconfig)
    try:
        config = config_utils.default_config(args.cores, args.caller, args.region, sys_config)
    except ValueError as e:
        errors.append(str(e))
    if errors:
        return _report_errors(errors, args)
    out_file = square.get_out_file(os.path.abspath(args.out_file))
    if "log_dir" not in config:
        config["log_dir"] = os.path.join(os.path.dirname(out_file), "log")
    log.setup_local_logging(config)
    logger.info("Squaring off %s VCF files with %s alignment files using %s" %
                (len(vcf_files), len(bam_files), config_utils.get_caller(config)))
    try:
        out_file = square.combine_vcfs(vcf_files, bam_files, os.path.abspath(args.ref_file), out_file,
                                       config)
    except square.SetupError as e:
        return _report_errors([str(e)], args)
    logger.info("Squared off calls in %s" % out_file)
    return 0

def main(in_args=None):
    if in_args is None:
        in_args = sys.argv[1:]
    parser, args = parse_cl_args(in_args)
    if args.sub_cmd == "square":
        sys.exit(run_square(args))
    else:
        parser.print_help()
        sys.exit(0)
