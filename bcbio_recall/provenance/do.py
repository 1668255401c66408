"""Centralize running of external commands, providing logging and tracking.
"""
import collections
import subprocess

from bcbio_recall import utils
from bcbio_recall.log import logger, logger_cl


def run(cmd, descr=None, sample=None, region=None):
    """Run the provided command, logging details and checking for errors.

    cmd is a list of arguments, run without a shell.
    """
    if descr:
        descr = _descr_str(descr, sample, region)
        logger.debug(descr)
    cmd = [str(x) for x in cmd]
    try:
        logger_cl.debug(" ".join(cmd))
        _do_run(cmd)
    except Exception:
        logger.exception("Command failed: %s" % (descr or ""))
        raise

def run_pipeline(cmds, out_file, descr=None, sample=None, region=None):
    """Run a structured pipeline of commands, connecting each by OS pipes.

    cmds is a list of argument lists. The first command reads nothing and the
    final command writes to out_file. Standard error from all steps is collected
    and reported if any step fails.
    """
    cmds = [[str(x) for x in cmd] for cmd in cmds]
    if descr:
        descr = _descr_str(descr, sample, region)
        logger.debug(descr)
    cmd_str = " | ".join(" ".join(cmd) for cmd in cmds) + " > %s" % out_file
    logger_cl.debug(cmd_str)
    err_file = "%s-pipeline.err" % out_file
    procs = []
    try:
        with open(out_file, "wb") as out_handle, open(err_file, "wb") as err_handle:
            stdin = subprocess.DEVNULL
            for i, cmd in enumerate(cmds):
                stdout = out_handle if i == len(cmds) - 1 else subprocess.PIPE
                p = subprocess.Popen(cmd, stdin=stdin, stdout=stdout, stderr=err_handle,
                                     close_fds=True)
                # allow upstream processes to receive SIGPIPE if a later step exits
                if procs:
                    procs[-1].stdout.close()
                procs.append(p)
                stdin = p.stdout
            exitcodes = [p.wait() for p in procs]
        failed = [(cmd, code) for cmd, code in zip(cmds, exitcodes) if code != 0]
        if failed:
            with open(err_file, errors="replace") as in_handle:
                err_tail = "".join(collections.deque(in_handle, maxlen=100))
            cmd, code = failed[0]
            raise subprocess.CalledProcessError(code, "%s\n%s" % (cmd_str, err_tail))
    except Exception:
        logger.exception("Pipeline failed: %s" % (descr or ""))
        raise
    finally:
        utils.remove_safe(err_file)

def _descr_str(descr, sample, region):
    """Add additional useful information on sample and region to description string.
    """
    if sample:
        descr = "{0} : {1}".format(descr, sample)
    if region:
        descr = "{0} : {1}".format(descr, region)
    return descr

def _do_run(cmd):
    """Perform running and check results, raising errors for issues.
    """
    s = subprocess.Popen(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        close_fds=True,
    )
    debug_stdout = collections.deque(maxlen=100)
    while 1:
        line = s.stdout.readline().decode("utf-8", errors="replace")
        if line.rstrip():
            debug_stdout.append(line)
            logger.debug(line.rstrip())
        exitcode = s.poll()
        if exitcode is not None:
            for line in s.stdout:
                debug_stdout.append(line.decode("utf-8", errors="replace"))
            if exitcode != 0:
                error_msg = " ".join(cmd) + "\n" + "".join(debug_stdout)
                s.communicate()
                s.stdout.close()
                raise subprocess.CalledProcessError(exitcode, error_msg)
            else:
                break
    s.communicate()
    s.stdout.close()
