"""Recall variants from pileups using bcftools mpileup and call.

http://www.htslib.org/workflow/#mapping_to_variant
"""
import sys

from bcbio_recall.pipeline import region as pregion
from bcbio_recall.variation import recall

class SamtoolsCaller(recall.CallerBackend):
    """Perform variant recalling at specified positions with pileup based calling.

    Restricts pileups to the input positions and normalizes the resulting
    calls against the reference before filtering.
    """
    name = "samtools"
    support_field = "AC"
    depth_field = "DP"
    ref_filters = ["AC[0] / AN <= 0.5 && DP < 4 && %QUAL < 20",
                   "DP < 13 && %QUAL < 10",
                   "AC[0] / AN > 0.5 && DP < 4 && %QUAL < 50"]

    def pipeline(self, sample, region, vcf_file, bam_file, ref_file, out_file, ploidy=None):
        bcftools = self.get_program("bcftools")
        mpileup = [bcftools, "mpileup", "-f", ref_file, "-a", "FORMAT/AD,FORMAT/DP", "-O", "u",
                   "-r", pregion.to_samtools(region), "-T", vcf_file, bam_file]
        call = [bcftools, "call", "-m", "-O", "v"]
        if ploidy == 1:
            call += ["--ploidy", "1"]
        call += self.resource_options()
        norm = [bcftools, "norm", "-f", ref_file, "-m", "+both", "-"]
        return ([mpileup, call, norm] + recall.python_step("samtools", "fix_header") +
                self.demotion_filters() + self.fixup() + self.nosupport_filter() +
                self.select_sample(sample) + self.compress())

def _fix_header_line(line):
    """Remove VCF 4.2 only header attributes that break older downstream tools.
    """
    if line.startswith("##"):
        line = line.replace(",Version=3>", ">").replace(',Version="3">', ">")
        line = line.replace("Number=R", "Number=.")
    return line

def fix_header():
    """Streaming filter from stdin to stdout, adjusting header declarations.
    """
    for line in sys.stdin:
        sys.stdout.write(_fix_header_line(line))
