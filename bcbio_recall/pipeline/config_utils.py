"""Loads configurations from .yaml files and expands environment variables.
"""
import copy
import os
import sys
import yaml

import toolz as tz


class CmdNotFound(Exception):
    pass

# ## Callers, with their generic names as aliases

CALLER_ALIASES = {"primary": "freebayes", "alternate": "platypus", "pileup": "samtools"}
SUPPORTED_CALLERS = ["freebayes", "platypus", "samtools"]

def normalize_caller(caller):
    """Convert a caller name or generic alias into the caller used for recalling.
    """
    caller = CALLER_ALIASES.get(str(caller).lower(), str(caller).lower())
    if caller not in SUPPORTED_CALLERS:
        raise ValueError("Unsupported caller %s. Supported calling options: %s" %
                         (caller, ", ".join(SUPPORTED_CALLERS + sorted(CALLER_ALIASES.keys()))))
    return caller

# ## Generalized configuration

def default_config(cores=1, caller="freebayes", region=None, sys_config=None):
    """Build a run configuration from command line options and system configuration.
    """
    config = copy.deepcopy(sys_config) if sys_config else {}
    if "resources" not in config:
        config["resources"] = {}
    if "algorithm" not in config:
        config["algorithm"] = {}
    config["algorithm"]["num_cores"] = int(cores)
    config["algorithm"]["caller"] = normalize_caller(caller)
    if region:
        config["algorithm"]["region"] = region
    return config

def load_system_config(config_file):
    """Load a system configuration file with resources and logging details.
    """
    if not os.path.exists(config_file):
        raise ValueError("Could not find input system configuration file %s" % config_file)
    config = load_config(config_file)
    if "algorithm" not in config:
        config["algorithm"] = {}
    config["bcbio_system"] = config_file
    return config

def load_config(config_file):
    """Load YAML config file, replacing environmental variables.
    """
    with open(config_file) as in_handle:
        config = yaml.safe_load(in_handle) or {}
    config = _expand_paths(config)
    if 'resources' not in config:
        config['resources'] = {}
    # lowercase resource names, the preferred way to specify, for back-compatibility
    newr = {}
    for k, v in config["resources"].items():
        if k.lower() != k:
            newr[k.lower()] = v
    config["resources"].update(newr)
    return config

def _expand_paths(config):
    for field, setting in config.items():
        if isinstance(config[field], dict):
            config[field] = _expand_paths(config[field])
        else:
            config[field] = expand_path(setting)
    return config

def expand_path(path):
    """ Combines os.path.expandvars with replacing ~ with $HOME.
    """
    try:
        return os.path.expandvars(path.replace("~", "$HOME"))
    except AttributeError:
        return path

def get_resources(name, config):
    """Retrieve resources for a program, pulling from multiple config sources.
    """
    return tz.get_in(["resources", name], config,
                     tz.get_in(["resources", "default"], config, {}))

def get_program(name, config, default=None):
    """Retrieve program command line from the configuration.

    Looks in `resources` for a configured `cmd`, then next to the current
    Python executable (bioconda installs) and finally on the PATH.
    """
    config = config or {}
    pconfig = tz.get_in(["resources", name], config)
    is_ok = lambda f: os.path.isfile(f) and os.access(f, os.X_OK)
    if is_ok(os.path.join(os.path.dirname(sys.executable), name)):
        return os.path.join(os.path.dirname(sys.executable), name)
    program = expand_path(_get_program_cmd(name, pconfig, default))
    if is_ok(program):
        return program
    # search the PATH now
    for adir in os.environ['PATH'].split(os.pathsep):
        if is_ok(os.path.join(adir, program)):
            return os.path.join(adir, program)
    raise CmdNotFound(" ".join(map(repr, (name, pconfig, default))))

def _get_program_cmd(name, pconfig, default):
    """Retrieve commandline of a program.
    """
    if pconfig is None:
        return name
    elif isinstance(pconfig, str):
        return pconfig
    elif "cmd" in pconfig:
        return pconfig["cmd"]
    elif default is not None:
        return default
    else:
        return name

def get_num_cores(config):
    return int(tz.get_in(["algorithm", "num_cores"], config, 1))

def get_caller(config):
    return normalize_caller(tz.get_in(["algorithm", "caller"], config, "freebayes"))
