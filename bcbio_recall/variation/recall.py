"""Recall variants at a fixed set of positions with a configurable caller.

Each caller runs as an explicit pipeline of commands: the caller itself
followed by normalization and a shared shape of post-filtering. Calls failing
quality and depth thresholds, scaled by allele frequency, are demoted to
reference calls when they have alternative support and to no-calls when
support and depth are both missing. Records are never dropped, so every
requested position receives a call.
"""
import sys

from bcbio_recall import utils
from bcbio_recall.distributed.transaction import file_transaction
from bcbio_recall.pipeline import config_utils, tools
from bcbio_recall.pipeline import region as pregion
from bcbio_recall.provenance import do
from bcbio_recall.variation import vcfutils

NOCALL_DEPTH = 4

class CallerBackend(object):
    """Base class for callers recalling at input positions.

    Subclasses define the caller command and the filtering fields and
    thresholds used to demote poorly supported calls.
    """
    name = None
    # INFO fields with alternative allele support and read depth
    support_field = "AC"
    depth_field = "DP"
    # Expressions identifying calls to convert to reference, applied in order
    ref_filters = []

    def __init__(self, config):
        self.config = config

    def recall(self, sample, region, vcf_file, bam_file, ref_file, out_file, ploidy=None):
        """Recall sample variants in region at the positions in vcf_file.
        """
        if not utils.file_exists(out_file):
            with file_transaction(self.config, out_file) as tx_out_file:
                cmds = self.pipeline(sample, region, vcf_file, bam_file, ref_file, tx_out_file, ploidy)
                do.run_pipeline(cmds, tx_out_file, "Recall variants with %s" % self.name,
                                sample, pregion.to_samtools(region))
        return vcfutils.bgzip_and_index(out_file, self.config)

    def pipeline(self, sample, region, vcf_file, bam_file, ref_file, out_file, ploidy=None):
        raise NotImplementedError

    def get_program(self, name):
        return config_utils.get_program(name, self.config)

    def resource_options(self):
        """Additional command line options for the caller from configuration resources.
        """
        return [str(x) for x in config_utils.get_resources(self.name, self.config).get("options", [])]

    def demotion_filters(self):
        """Convert failing calls with support to reference calls.
        """
        bcftools = self.get_program("bcftools")
        return [[bcftools, "filter", "-S", "0", "-e", "%s > 0 && %s" % (self.support_field, expr)]
                for expr in self.ref_filters]

    def nosupport_filter(self):
        """Convert calls without support and with low depth into no-calls.
        """
        bcftools = self.get_program("bcftools")
        return [[bcftools, "filter", "-S", ".", "-e", "%s == 0 && %s < %s" %
                 (self.support_field, self.depth_field, NOCALL_DEPTH)]]

    def fixup(self):
        """Recalculate allele counts and frequencies after genotype changes.
        """
        return [[self.get_program("vcffixup"), "-"]]

    def uniq_alleles(self):
        return [[self.get_program("vcfuniqalleles")]]

    def normalize(self, ref_file):
        return [[self.get_program("vt"), "normalize", "-r", ref_file, "-q", "-"]]

    def select_sample(self, sample):
        return [[self.get_program("bcftools"), "view", "-s", sample, "-"]]

    def compress(self):
        return [tools.get_bgzip_cmd(self.config) + ["-c"]]

def python_step(module, fn):
    """Run a streaming line transformation from this package inside a pipeline.
    """
    return [[sys.executable, "-c", "from bcbio_recall.variation import %s; %s.%s()" % (module, module, fn)]]

def get_backend(config):
    """Retrieve the configured caller backend, selected once for a run.
    """
    from bcbio_recall.variation import freebayes, platypus, samtools
    backends = {"freebayes": freebayes.FreeBayesCaller,
                "platypus": platypus.PlatypusCaller,
                "samtools": samtools.SamtoolsCaller}
    return backends[config_utils.get_caller(config)](config)
