#!/usr/bin/env python3

"""\
The parameters that control a run are gathered into a single immutable Settings
object when a command starts.  Values come from three places, in order of
precedence: options given on the command line, an optional YAML file given
with `--config`, and the defaults below (which match the layout of the GPU
nodes this pipeline was written for).
"""

import os, collections
import yaml
from . import pipeline

DEFAULTS = collections.OrderedDict([
        ('local_root', '/mnt/nvme'),
        ('db_path', '/mnt/nvme/colabfold_db/'),
        ('mmseqs', '/home/ubuntu/localcolabfold/localcolabfold/conda/envs/colabfold/bin/mmseqs'),
        ('threads', 15),
        ('gpu', 1),
        ('model_type', 'alphafold2_multimer_v3'),
        ('num_models', 5),
        ('num_recycles', 3),
        ('pair_mode', 'unpaired_paired'),
        ('pair_strategy', 'greedy'),
        ('use_templates', True),
        ('search_exe', 'colabfold_search'),
        ('predict_exe', 'colabfold_batch'),
        ('rsync', 'rsync'),
])

INTEGER_FIELDS = 'threads', 'gpu', 'num_models', 'num_recycles'
PATH_FIELDS = 'input_path', 'archive_root', 'local_root', 'db_path', 'mmseqs'


class Settings (collections.namedtuple(
        'Settings', ['input_path', 'archive_root'] + list(DEFAULTS))):
    """
    Every tunable parameter of a run.  Build one with `Settings.load()` and
    pass it to the objects that need it; it can't be modified afterwards.
    """
    __slots__ = ()

    @classmethod
    def load(cls, input_path, archive_root, overrides=None, config_path=None):
        """
        Combine the command line, the config file, and the defaults.

        Any override that is None is treated as "not given", so it's safe to
        pass the values parsed by docopt straight through.
        """
        values = collections.OrderedDict(DEFAULTS)

        if config_path is not None:
            values.update(load_config(config_path))

        for key, value in (overrides or {}).items():
            if key not in DEFAULTS:
                raise SettingsError("Unknown setting '{0}'.".format(key))
            if value is not None:
                values[key] = value

        values['input_path'] = input_path
        values['archive_root'] = archive_root

        for key in INTEGER_FIELDS:
            values[key] = _to_int(key, values[key])

        if not isinstance(values['use_templates'], bool):
            raise SettingsError(
                    "'use_templates' must be true or false, not '{0}'.".format(
                        values['use_templates']))

        for key in PATH_FIELDS:
            values[key] = os.path.expanduser(str(values[key]))

        return cls(**values)

    def describe(self):
        return '\n'.join(
                '{0:<15} {1}'.format(k + ':', v)
                for k, v in self._asdict().items())


def load_config(path):
    """
    Read settings from a YAML file.  The keys must be the names of fields in
    the Settings tuple, e.g.:

        local_root: /scratch
        db_path: /scratch/colabfold_db
        num_models: 3
        use_templates: false
    """
    if not os.path.exists(path):
        raise SettingsError("Config file not found: '{0}'".format(path))

    with open(path) as file:
        config = yaml.safe_load(file)

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise SettingsError(
                "'{0}' must contain a mapping of setting names to values.".format(path))

    unknown_keys = sorted(set(config) - set(DEFAULTS))
    if unknown_keys:
        raise SettingsError("Unknown setting(s) in '{0}': {1}".format(
            path, ', '.join(map(str, unknown_keys))))

    return config

def _to_int(key, value):
    if isinstance(value, bool):
        raise SettingsError("'{0}' must be an integer, not '{1}'.".format(key, value))
    try:
        return int(value)
    except (TypeError, ValueError):
        raise SettingsError("'{0}' must be an integer, not '{1}'.".format(key, value))


class SettingsError (pipeline.PipelineError):
    pass
