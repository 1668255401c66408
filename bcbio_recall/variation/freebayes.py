"""Bayesian variant recalling with FreeBayes.

https://github.com/freebayes/freebayes
"""
import os
import sys

from bcbio_recall import utils
from bcbio_recall.pipeline import region as pregion
from bcbio_recall.variation import recall

class FreeBayesCaller(recall.CallerBackend):
    """Perform variant recalling at specified positions with FreeBayes.

    Cleans up FreeBayes calling:
     - Converts non-passing low quality variants to reference calls.
     - Reporting calls as no-call if they do not have at least a depth of 4
     - Ceil FreeBayes qualities at 1 to avoid errors when feeding to GATK downstream.
     - Remove duplicate alternative alleles.
    """
    name = "freebayes"
    support_field = "AC"
    depth_field = "DP"
    ref_filters = ["NUMALT == 0", "%QUAL < 5", "AF[*] <= 0.5 && DP < 4",
                   "AF[*] <= 0.5 && DP < 13 && %QUAL < 10", "AF[*] > 0.5 && DP < 4 && %QUAL < 50"]

    def pipeline(self, sample, region, vcf_file, bam_file, ref_file, out_file, ploidy=None):
        sample_file = os.path.join(os.path.dirname(out_file),
                                   "%s-samples.txt" % os.path.basename(utils.file_root(out_file)))
        with open(sample_file, "w") as out_handle:
            out_handle.write(sample + "\n")
        cmd = [self.get_program("freebayes"), "-b", bam_file, "--variant-input", vcf_file,
               "--only-use-input-alleles", "--min-repeat-entropy", "1",
               "--use-best-n-alleles", "4", "--min-mapping-quality", "20",
               "-f", ref_file, "-r", pregion.to_freebayes(region), "-s", sample_file]
        if ploidy:
            cmd += ["-p", str(ploidy)]
        cmd += self.resource_options()
        return ([cmd] + self.uniq_alleles() + self.demotion_filters() + self.fixup() +
                self.nosupport_filter() + recall.python_step("freebayes", "clamp_quality") +
                self.compress())

def _clamp_quality_line(line, min_qual=1):
    """Set quality scores below the minimum to the minimum, leaving headers unchanged.
    """
    if line.startswith("#"):
        return line
    parts = line.split("\t")
    if len(parts) > 5 and parts[5] != "." and float(parts[5]) < min_qual:
        parts[5] = str(min_qual)
    return "\t".join(parts)

def clamp_quality():
    """Streaming filter from stdin to stdout, setting a minimum quality of 1.

    Downstream tools like GATK reject quality scores of 0.
    """
    for line in sys.stdin:
        sys.stdout.write(_clamp_quality_line(line))
