import json
import logging
import os
import tempfile

from maptask.errors import OutputWriteError
from maptask.framework.types import KeyValue

LOG = logging.getLogger(__name__)

FILE_PREFIX = 'mrtmp.'
TEMP_SUFFIX = '.tmp'


def intermediate_file_name(job_name, map_task, reduce_task):
    """Name of the file map task `map_task` writes for reduce task `reduce_task`.

    The reduce phase derives the same name to find its input, so this is the
    only coordination point between the two phases.
    """
    return f"{FILE_PREFIX}{job_name}-{map_task}-{reduce_task}"


def _current_umask():
    mask = os.umask(0)
    os.umask(mask)
    return mask


def encode_record(kv):
    """One self-delimiting record: a JSON object on a single line."""
    return json.dumps(kv.to_dict(), ensure_ascii=False) + '\n'


def decode_record(line):
    return KeyValue.from_dict(json.loads(line))


class IntermediateFileManager:
    """Manages intermediate files for map outputs"""

    def __init__(self, base_dir='./intermediate'):
        self.base_dir = base_dir

    def path_for(self, job_name, map_task, reduce_task):
        return os.path.join(self.base_dir, intermediate_file_name(job_name, map_task, reduce_task))

    def write_partitioned_output(self, job_name, map_task, partitions):
        """Write partitioned map output to disk

        Every non-empty partition goes to a temporary file first. Only once all
        of them are written and closed are they renamed over their final
        names, so a retried task replaces earlier output instead of appending
        to it. Files left by an earlier attempt for partitions that are empty
        now are removed.

        Args:
            job_name: Name of the job
            map_task: Index of the map task
            partitions: List of lists of KeyValue, one per partition

        Returns:
            Dict of {partition_id: file_path} for the non-empty partitions

        Raises:
            OutputWriteError: if any partition could not be written. No
                temporary files are left behind in that case.
        """
        try:
            os.makedirs(self.base_dir, exist_ok=True)
        except OSError as e:
            raise OutputWriteError(self.base_dir, e) from e

        staged = {}
        try:
            for partition_id, pairs in enumerate(partitions):
                if not pairs:
                    continue
                final_path = self.path_for(job_name, map_task, partition_id)
                staged[partition_id] = (self._write_temp(final_path, pairs), final_path)
                LOG.debug("staged %d records for %s", len(pairs), final_path)
        except OutputWriteError:
            self._discard([temp for temp, _ in staged.values()])
            raise

        file_paths = {}
        for partition_id, (temp_path, final_path) in staged.items():
            try:
                os.replace(temp_path, final_path)
            except OSError as e:
                self._discard([temp for temp, _ in staged.values()])
                raise OutputWriteError(final_path, e) from e
            file_paths[partition_id] = final_path

        for partition_id, stale_path in self.list_task_files(job_name, map_task).items():
            if partition_id not in file_paths:
                LOG.info("Removing stale intermediate file %s", stale_path)
                try:
                    os.remove(stale_path)
                except OSError as e:
                    raise OutputWriteError(stale_path, e) from e

        return file_paths

    def _write_temp(self, final_path, pairs):
        fd, temp_path = None, None
        try:
            fd, temp_path = tempfile.mkstemp(
                dir=self.base_dir,
                prefix=os.path.basename(final_path) + '.',
                suffix=TEMP_SUFFIX,
            )
            with os.fdopen(fd, 'w', encoding='utf-8', newline='\n') as f:
                fd = None
                for kv in pairs:
                    f.write(encode_record(kv))
                f.flush()
                os.fsync(f.fileno())
            # mkstemp creates 0600; committed files get 0666 minus the umask
            os.chmod(temp_path, 0o666 & ~_current_umask())
        except (OSError, TypeError, ValueError) as e:
            # TypeError/ValueError: a key or value json cannot encode
            if fd is not None:
                os.close(fd)
            if temp_path is not None:
                self._discard([temp_path])
            raise OutputWriteError(final_path, e) from e
        return temp_path

    def _discard(self, paths):
        for path in paths:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass
            except OSError as e:
                LOG.warning("Could not remove temporary file %s: %s", path, e)

    def read_intermediate_file(self, filepath):
        """Read an intermediate file one record at a time"""
        with open(filepath, 'r', encoding='utf-8', newline='\n') as f:
            for line in f:
                if line.strip():
                    yield decode_record(line)

    def list_task_files(self, job_name, map_task):
        """Committed intermediate files of one map task

        Returns:
            Dict of {partition_id: file_path}
        """
        prefix = intermediate_file_name(job_name, map_task, '')
        found = {}
        if not os.path.isdir(self.base_dir):
            return found
        for filename in os.listdir(self.base_dir):
            if filename.startswith(prefix):
                rest = filename[len(prefix):]
                if rest.isdecimal():
                    found[int(rest)] = os.path.join(self.base_dir, filename)
        return found

    def cleanup_task_files(self, job_name, map_task):
        """Clean up intermediate files for a task, including leftover temporaries

        Raises:
            OutputWriteError: a file could not be removed
        """
        prefix = intermediate_file_name(job_name, map_task, '')
        removed = []
        if not os.path.isdir(self.base_dir):
            return removed
        for filename in os.listdir(self.base_dir):
            if not filename.startswith(prefix):
                continue
            rest = filename[len(prefix):]
            bucket = rest.split('.', 1)[0]
            if bucket.isdecimal() and (rest == bucket or rest.endswith(TEMP_SUFFIX)):
                path = os.path.join(self.base_dir, filename)
                try:
                    os.remove(path)
                except OSError as e:
                    raise OutputWriteError(path, e) from e
                removed.append(path)
        return removed
