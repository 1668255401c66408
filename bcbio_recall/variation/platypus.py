"""Recall variants with the Platypus Haplotype-Based variant caller.

http://www.well.ox.ac.uk/platypus
https://github.com/andyrimmer/Platypus
"""
import sys

from bcbio_recall.pipeline import region as pregion
from bcbio_recall.variation import recall

class PlatypusCaller(recall.CallerBackend):
    """Perform variant recalling at specified positions with Platypus.

    Removes the hard Q20 filter and replaces it with NA12878/GiaB tuned depth
    and quality based filters. Performs normalization and removal of duplicate
    alleles.
    """
    name = "platypus"
    support_field = "TR"
    depth_field = "TC"
    ref_filters = ["FR[*] <= 0.5 && TC < 4 && %QUAL < 20",
                   "FR[*] <= 0.5 && TC < 13 && %QUAL < 10",
                   "FR[*] > 0.5 && TC < 4 && %QUAL < 20"]

    def pipeline(self, sample, region, vcf_file, bam_file, ref_file, out_file, ploidy=None):
        cmd = [self.get_program("platypus"), "callVariants", "--bamFiles=%s" % bam_file,
               "--regions=%s" % pregion.to_samtools(region),
               "--hapScoreThreshold", "10", "--scThreshold", "0.99", "--filteredReadsFrac", "0.9",
               "--rmsmqThreshold", "20", "--qdThreshold", "0", "--abThreshold", "0.0",
               "--minVarFreq", "0.0", "--refFile=%s" % ref_file, "--source=%s" % vcf_file,
               "--minPosterior=0", "--getVariantsFromBAMs=0",
               "--logFileName", "/dev/null", "--verbosity=1", "--output", "-"]
        cmd += self.resource_options()
        return ([cmd] + recall.python_step("platypus", "force_pass") + self.normalize(ref_file) +
                self.uniq_alleles() + self.demotion_filters() + self.fixup() +
                self.nosupport_filter() + self.select_sample(sample) + self.compress())

def _force_pass_line(line):
    if line.startswith("#"):
        return line
    parts = line.split("\t")
    if len(parts) > 6:
        parts[6] = "PASS"
    return "\t".join(parts)

def force_pass():
    """Streaming filter from stdin to stdout, setting all records to PASS.

    Platypus filters are position specific and get replaced by our own
    depth and quality filters.
    """
    for line in sys.stdin:
        sys.stdout.write(_force_pass_line(line))
