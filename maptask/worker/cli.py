#!/usr/bin/env python3
"""
Run a single map task from the command line, the way a worker process would.

Usage:
    python3 -m maptask.worker.cli --job wc --map-task 0 --input data/part-0.txt \\
        --n-reduce 3 --function maptask.framework.mapper:word_count_map
    python3 -m maptask.worker.cli ... --cleanup      # remove the task's files first

Exit status is 0 when every intermediate file was committed, 1 otherwise.
"""

import argparse
import json
import logging
import sys

from maptask.errors import MapTaskError
from maptask.worker.executor import TaskExecutor
from maptask.worker.loader import load_map_function

LOG = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(description='Execute one MapReduce map task')
    parser.add_argument('--job', required=True, help='Job name shared by all tasks of the job')
    parser.add_argument('--map-task', type=int, required=True, help='Index of this map task')
    parser.add_argument('--input', required=True, help='Input partition to read')
    parser.add_argument('--n-reduce', type=int, default=None,
                        help='Number of reduce tasks (default: $MAPREDUCE_NUM_REDUCE or 3)')
    parser.add_argument('--function', default='maptask.framework.mapper:word_count_map',
                        help='Map function as module:function or path.py:function')
    parser.add_argument('--intermediate-dir', default=None,
                        help='Directory for intermediate files (default: $MAPREDUCE_INTERMEDIATE_DIR or ./intermediate)')
    parser.add_argument('--cleanup', action='store_true',
                        help="Remove this task's existing intermediate files before running")
    parser.add_argument('--verbose', '-v', action='store_true', help='Log per-bucket detail')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='[%(asctime)s] %(levelname)s %(name)s: %(message)s',
    )

    try:
        map_function = load_map_function(args.function)
        executor = TaskExecutor(
            num_reduce_tasks=args.n_reduce,
            map_function=map_function,
            intermediate_dir=args.intermediate_dir,
        )
        if args.cleanup:
            executor.cleanup(args.job, args.map_task)
    except MapTaskError as e:
        LOG.error("%s", e)
        return 1

    result = executor.run_map_task(args.job, args.map_task, args.input)
    if not result.success:
        return 1

    print(json.dumps({str(k): v for k, v in sorted(result.files.items())}, indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
