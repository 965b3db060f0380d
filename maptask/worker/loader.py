import importlib
import importlib.util
import logging
import os

from maptask.errors import InvalidConfiguration

LOG = logging.getLogger(__name__)


def load_map_function(reference, function_name='map_function'):
    """Resolve a user map function.

    `reference` is either ``package.module:function``, ``path/to/job.py:function``
    or a bare module/path, in which case `function_name` is looked up.
    """
    target, _, attr = reference.rpartition(':')
    if not target or os.sep in attr or attr.endswith('.py'):
        # No function part, or the colon belonged to a Windows drive letter
        target, attr = reference, function_name

    if target.endswith('.py') or os.path.sep in target:
        module = _load_from_path(target)
    else:
        try:
            module = importlib.import_module(target)
        except ImportError as e:
            raise InvalidConfiguration(f"cannot import {target}: {e}") from e

    fn = getattr(module, attr, None)
    if not callable(fn):
        raise InvalidConfiguration(f"{attr} not found in {target}")
    LOG.debug("loaded map function %s from %s", attr, target)
    return fn


def _load_from_path(path):
    if not os.path.isfile(path):
        raise InvalidConfiguration(f"job file not found: {path}")
    name = os.path.splitext(os.path.basename(path))[0]
    spec = importlib.util.spec_from_file_location(f"user_job_{name}", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module
