# Process pool helpers shared by the index builder and the bubble caller

import logging
from concurrent.futures import ProcessPoolExecutor
from typing import Callable, Iterable

logger = logging.getLogger(__name__)


def parallel_map(func: Callable, items: Iterable, threads: int = 1,
                 initializer: Callable = None, initargs: tuple = (),
                 chunksize: int = 1) -> list:
    """
    Apply func to every item and return results in input order

    Read-only data needed by func is installed once per worker by
    initializer(*initargs), so it is not pickled with every item.
    With threads <= 1 everything runs in the current process.
    """

    items = list(items)
    if threads is None or threads <= 1 or len(items) <= 1:
        if initializer is not None:
            initializer(*initargs)
        return [func(x) for x in items]

    logger.debug(f'Run {len(items)} tasks on {threads} processes')
    with ProcessPoolExecutor(max_workers=threads,
                             initializer=initializer,
                             initargs=initargs) as executor:
        results = list(executor.map(func, items, chunksize=chunksize))

    return results


def get_chunksize(n_items: int, threads: int) -> int:
    """ Split tasks into ~4 chunks per worker """

    if threads is None or threads <= 1:
        return 1
    return max(1, n_items // (threads * 4))
