#!/usr/bin/env python3

import os
import pytest
from auto_multimer.settings import Settings, SettingsError, DEFAULTS

def test_defaults():
    settings = Settings.load('complexes', '/archive')

    assert settings.input_path == 'complexes'
    assert settings.archive_root == '/archive'
    assert settings.local_root == '/mnt/nvme'
    assert settings.db_path == '/mnt/nvme/colabfold_db/'
    assert settings.threads == 15
    assert settings.gpu == 1
    assert settings.model_type == 'alphafold2_multimer_v3'
    assert settings.num_models == 5
    assert settings.num_recycles == 3
    assert settings.pair_mode == 'unpaired_paired'
    assert settings.pair_strategy == 'greedy'
    assert settings.use_templates is True

def test_settings_are_immutable():
    settings = Settings.load('complexes', '/archive')

    with pytest.raises(AttributeError):
        settings.threads = 2

def test_overrides():
    settings = Settings.load('complexes', '/archive', overrides=dict(
        threads='20', gpu=None, use_templates=False, pair_mode='paired'))

    assert settings.threads == 20
    assert settings.gpu == 1
    assert settings.use_templates is False
    assert settings.pair_mode == 'paired'

def test_unknown_override():
    with pytest.raises(SettingsError):
        Settings.load('complexes', '/archive', overrides=dict(nthreads=4))

def test_bad_integer():
    with pytest.raises(SettingsError):
        Settings.load('complexes', '/archive', overrides=dict(num_models='five'))

def test_paths_are_expanded():
    settings = Settings.load('~/complexes', '~/archive')

    assert settings.input_path == os.path.expanduser('~/complexes')
    assert settings.archive_root == os.path.expanduser('~/archive')

def test_config_file(tmp_path):
    config = tmp_path / 'settings.yml'
    config.write_text("""\
local_root: /scratch
num_models: 3
use_templates: false
threads: 8
""")
    settings = Settings.load(
            'complexes', '/archive',
            overrides=dict(threads='32', local_root=None),
            config_path=str(config))

    assert settings.local_root == '/scratch'
    assert settings.num_models == 3
    assert settings.use_templates is False
    assert settings.threads == 32
    assert settings.db_path == DEFAULTS['db_path']

def test_empty_config_file(tmp_path):
    config = tmp_path / 'settings.yml'
    config.write_text('')

    settings = Settings.load('complexes', '/archive', config_path=str(config))
    assert settings.threads == DEFAULTS['threads']

def test_bad_config_files(tmp_path):
    missing = tmp_path / 'missing.yml'
    not_a_mapping = tmp_path / 'list.yml'
    not_a_mapping.write_text('- threads\n- gpu\n')
    unknown_key = tmp_path / 'unknown.yml'
    unknown_key.write_text('input_path: complexes\n')
    bad_bool = tmp_path / 'bool.yml'
    bad_bool.write_text('use_templates: sometimes\n')

    for path in (missing, not_a_mapping, unknown_key, bad_bool):
        with pytest.raises(SettingsError):
            Settings.load('complexes', '/archive', config_path=str(path))

def test_describe():
    description = Settings.load('complexes', '/archive').describe()

    assert 'model_type:' in description
    assert 'alphafold2_multimer_v3' in description
