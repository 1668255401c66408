"""Run tasks in parallel on a single machine using multiple cores.

Work units shell out to external tools and wait on them, so a thread based
pool keeps parallelism without pickling arguments. The same runner is passed
to each point of fan-out, across regions and across samples in a region.
"""
import joblib

from bcbio_recall.log import logger

def runner(cores):
    """Provide a parallel map over argument lists, bounded by the number of cores.
    """
    cores = max(int(cores), 1)
    def run_parallel(fn, items):
        items = [x for x in items if x is not None]
        if len(items) == 0:
            return []
        logger.debug("parallel: %s on %s items with %s cores" % (fn.__name__, len(items), cores))
        return run_multicore(fn, items, cores)
    run_parallel.cores = cores
    return run_parallel

def run_multicore(fn, items, cores):
    """Run the function using multiple cores on the given items to process.

    Returns results in the same order as the input items. The first failure
    is re-raised after in-flight work completes.
    """
    if len(items) == 0:
        return []
    if cores == 1:
        return [fn(*x) for x in items]
    num_jobs = min(cores, len(items))
    return list(joblib.Parallel(num_jobs, batch_size=1, backend="threading")(
        joblib.delayed(fn)(*x) for x in items))
