from joblib import Parallel, delayed
import numpy as np
from tqdm import tqdm

from paleomag_utils.set_config import get_setting, log


def spawn_seeds(seed, n):
    """n independent SeedSequences derived from seed (int, SeedSequence or None)"""
    if isinstance(seed, np.random.SeedSequence):
        return seed.spawn(n)
    return np.random.SeedSequence(seed).spawn(n)


def run_parallel(func, tasks, seed=None, n_jobs=None, progress=None, desc=None):
    """
    Runs func(task, rng) for every task, each with its own Generator.
    Seeds are spawned before dispatch so results depend only on seed,
    never on n_jobs or on the order workers finish in.

    Args:
        func: callable taking (task, rng)
        tasks: list of task arguments
        seed: int or SeedSequence for reproducible runs
        n_jobs: joblib worker count, defaults to [parallel] n_jobs
        progress: optional callable(done, total)
        desc: tqdm label, shows a progress bar when given
    """
    tasks = list(tasks)
    n_jobs = get_setting('parallel', 'n_jobs', 1) if n_jobs is None else n_jobs
    seeds = spawn_seeds(seed, len(tasks))
    log.info(f'Running {len(tasks)} tasks on {n_jobs} worker(s)')

    jobs = (delayed(func)(task, np.random.default_rng(task_seed))
            for task, task_seed in zip(tasks, seeds))
    results = []
    iterator = Parallel(n_jobs=n_jobs, return_as='generator')(jobs)
    if desc is not None:
        iterator = tqdm(iterator, total=len(tasks), desc=desc)
    for done, result in enumerate(iterator, start=1):
        results.append(result)
        if progress is not None:
            progress(done, len(tasks))
    return results
