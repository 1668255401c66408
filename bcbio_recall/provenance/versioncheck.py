"""Check specific required program versions required for recalling.

Older versions of FreeBayes silently ignore input alleles, producing
incorrect squared off calls rather than failing, so these checks are
blocking.
"""
import subprocess

from looseversion import LooseVersion

from bcbio_recall.log import logger
from bcbio_recall.pipeline import config_utils

MIN_VERSIONS = {"freebayes": "v0.9.14-1"}

def _clean_version(version):
    return version.strip().lstrip("v")

def is_older(version, want_version):
    """Compare versions, returning None when version cannot be compared.
    """
    try:
        return LooseVersion(_clean_version(version)) < LooseVersion(_clean_version(want_version))
    except TypeError:
        return None

def get_freebayes_version(config):
    """Retrieve the FreeBayes version from the last line of its version output.
    """
    freebayes = config_utils.get_program("freebayes", config)
    p = subprocess.run([freebayes, "--version"], stdout=subprocess.PIPE, stderr=subprocess.STDOUT)
    lines = [x for x in p.stdout.decode(errors="replace").split("\n") if x.strip()]
    if not lines:
        return ""
    return lines[-1].split(":")[-1].strip()

def freebayes(config):
    """Ensure FreeBayes supports recalling only at input alleles.
    """
    want_version = MIN_VERSIONS["freebayes"]
    version = get_freebayes_version(config)
    older = is_older(version, want_version) if version else None
    if older is None:
        return ("Require at least freebayes %s for recalling. Found unknown version: %s" %
                (want_version, version or "no version output"))
    elif older:
        return "Require at least freebayes %s for recalling. Found %s" % (want_version, version)

def testall(config):
    logger.info("Testing minimum versions of installed programs")
    msgs = []
    if config_utils.get_caller(config) == "freebayes":
        out = freebayes(config)
        if out:
            msgs.append(out)
    if msgs:
        raise OSError("Program problems found. Upgrade dependencies with conda:\n\n" +
                      "\n".join(msgs))
