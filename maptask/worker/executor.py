import logging
import os

from maptask.errors import InputReadError, InvalidConfiguration, MapTaskError
from maptask.framework.mapper import MapPhase, word_count_map
from maptask.framework.types import JobIdentity, MapTaskResult
from maptask.utils.partitioner import Partitioner, validate_num_partitions
from maptask.worker.intermediate import IntermediateFileManager

LOG = logging.getLogger(__name__)

DEFAULT_INTERMEDIATE_DIR = './intermediate'
DEFAULT_NUM_REDUCE = 3


class TaskExecutor:
    """Executes map tasks.

    Based on Google MapReduce paper:
    - Map tasks: Apply map function, partition output into R intermediate files

    Scheduling, retries and the reduce phase belong to the caller. Any
    failure aborts the whole task with a MapTaskError; the caller re-runs
    the task from scratch.
    """

    def __init__(self, num_reduce_tasks=None, map_function=None,
                 intermediate_dir=None):
        """Initialize executor.

        Args:
            num_reduce_tasks: Default number of reduce partitions (R). Falls
                back to $MAPREDUCE_NUM_REDUCE, then 3.
            map_function: Default user map function (default: word_count_map)
            intermediate_dir: Directory for intermediate files. Falls back to
                $MAPREDUCE_INTERMEDIATE_DIR, then ./intermediate.
        """
        if num_reduce_tasks is None:
            env_r = os.environ.get('MAPREDUCE_NUM_REDUCE')
            if env_r:
                try:
                    num_reduce_tasks = int(env_r)
                except ValueError:
                    raise InvalidConfiguration(
                        f"MAPREDUCE_NUM_REDUCE must be an integer, got {env_r!r}") from None
            else:
                num_reduce_tasks = DEFAULT_NUM_REDUCE
        self.num_reduce_tasks = validate_num_partitions(num_reduce_tasks)

        self.map_function = map_function or word_count_map

        if intermediate_dir is None:
            intermediate_dir = os.environ.get('MAPREDUCE_INTERMEDIATE_DIR') or DEFAULT_INTERMEDIATE_DIR
        self.intermediate_manager = IntermediateFileManager(base_dir=intermediate_dir)

    def update_num_reduce_tasks(self, num_reduce_tasks):
        """Update R value (called when a task assignment carries a different R)."""
        self.num_reduce_tasks = validate_num_partitions(num_reduce_tasks)

    def execute_map(self, job_name, map_task, input_path, num_reduce_tasks=None,
                    map_function=None):
        """Execute a map task.

        1. Read the whole input file
        2. Apply the map function to (input_path, contents) once
        3. Partition output into R buckets using ihash(key) mod R
        4. Write every non-empty bucket to its intermediate file

        Args:
            job_name: Name of the job this task belongs to
            map_task: Index of the map task within the job
            input_path: Input partition to read
            num_reduce_tasks: R for this job (default: the executor's R)
            map_function: Map function for this job (default: the executor's)

        Returns:
            dict: {partition_id: file_path} for the buckets that received pairs

        Raises:
            InvalidConfiguration: bad identifiers or R, before any I/O
            InputReadError: the input could not be read
            OutputWriteError: an intermediate file could not be written
        """
        file_paths, _ = self._execute(job_name, map_task, input_path,
                                      num_reduce_tasks, map_function)
        return file_paths

    def _execute(self, job_name, map_task, input_path, num_reduce_tasks, map_function):
        identity = JobIdentity(job_name, map_task)
        num_reduce_tasks = validate_num_partitions(
            self.num_reduce_tasks if num_reduce_tasks is None else num_reduce_tasks)
        map_function = map_function or self.map_function

        LOG.info("Map task %s/%d starting on %s (R=%d)",
                 identity.job_name, identity.map_task, input_path, num_reduce_tasks)

        contents = self._read_input(input_path)

        map_phase = MapPhase(map_function, Partitioner(num_reduce_tasks))
        partitions = map_phase.execute(input_path, contents)
        total = sum(len(p) for p in partitions)

        file_paths = self.intermediate_manager.write_partitioned_output(
            identity.job_name,
            identity.map_task,
            partitions
        )

        LOG.info("Map task %s/%d complete: %d pairs in %d intermediate files",
                 identity.job_name, identity.map_task, total, len(file_paths))
        return file_paths, total

    def run_map_task(self, job_name, map_task, input_path, num_reduce_tasks=None,
                     map_function=None):
        """Same as execute_map, but reports failure as a MapTaskResult.

        Only MapTaskError is converted; an exception raised by the map
        function itself propagates unchanged.
        """
        try:
            files, records = self._execute(job_name, map_task, input_path,
                                           num_reduce_tasks, map_function)
        except MapTaskError as e:
            LOG.error("Map task %s/%s failed: %s", job_name, map_task, e)
            return MapTaskResult(success=False, error=str(e))
        return MapTaskResult(success=True, files=files, records=records)

    def _read_input(self, input_path):
        try:
            with open(input_path, 'r', encoding='utf-8', newline='') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise InputReadError(input_path, e) from e

    def cleanup(self, job_name, map_task):
        """Remove a task's intermediate files before it is retried."""
        removed = self.intermediate_manager.cleanup_task_files(job_name, map_task)
        LOG.info("Removed %d intermediate files of map task %s/%s", len(removed), job_name, map_task)
        return removed


def execute_map_task(job_name, map_task, input_path, num_reduce_tasks, map_function,
                     intermediate_dir=None):
    """Run one map task with a throwaway executor; see TaskExecutor.execute_map.

    Unlike TaskExecutor, there is no default map function here.
    """
    if not callable(map_function):
        raise InvalidConfiguration(f"map function must be callable, got {map_function!r}")
    executor = TaskExecutor(num_reduce_tasks=num_reduce_tasks, map_function=map_function,
                            intermediate_dir=intermediate_dir)
    return executor.execute_map(job_name, map_task, input_path)
