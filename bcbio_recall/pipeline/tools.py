"""Access tool command lines, handling back compatibility and file type issues.
"""
import subprocess

from bcbio_recall.pipeline import config_utils

def get_tabix_cmd(config):
    """Retrieve tabix command, handling new bcftools tabix and older tabix.
    """
    try:
        tabix = config_utils.get_program("tabix", config)
    except config_utils.CmdNotFound:
        tabix = None
    if tabix:
        return [tabix]
    bcftools = config_utils.get_program("bcftools", config)
    # bcftools has terrible error codes and stderr output, swallow those.
    p = subprocess.run([bcftools], stdout=subprocess.PIPE, stderr=subprocess.STDOUT)
    if p.stdout.decode(errors="replace").find("tabix") >= 0:
        return [bcftools, "tabix"]
    raise config_utils.CmdNotFound("tabix")

def get_bgzip_cmd(config):
    """Retrieve command to use for bgzip, using parallel threads when available.
    """
    num_cores = config_utils.get_num_cores(config)
    cmd = [config_utils.get_program("bgzip", config)]
    if num_cores > 1:
        cmd += ["--threads", str(num_cores)]
    return cmd
