#!/usr/bin/env python3

import os
import pytest
from auto_multimer import pipeline
from auto_multimer import WorkUnit, ScratchWorkspace, ArchiveWorkspace

def touch(path, content='x', mtime=None):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path

def test_work_unit_id():
    assert WorkUnit('/data/complex1.fasta').id == 'complex1'
    assert WorkUnit('complex1.v2.fa').id == 'complex1.v2'
    assert WorkUnit('complex1.fasta').status == pipeline.NOT_STARTED

def test_scratch_paths():
    w = ScratchWorkspace('/mnt/nvme/', 'complex1')

    assert w.msa_work_root == '/mnt/nvme/msas_work'
    assert w.prediction_work_root == '/mnt/nvme/predictions_work'
    assert w.msa_dir == '/mnt/nvme/msas_work/complex1'
    assert w.msa_path == '/mnt/nvme/msas_work/complex1/complex1.a3m'
    assert w.prediction_dir == '/mnt/nvme/predictions_work/complex1'

def test_archive_paths():
    w = ArchiveWorkspace('/archive', 'complex1')

    assert w.focus_dir == '/archive/complex1'
    assert w.msa_path == '/archive/complex1/msa/complex1.a3m'
    assert w.prediction_dir == '/archive/complex1/predictions'
    assert w.search_log_path == '/archive/complex1/logs/search.log'
    assert w.predict_log_path == '/archive/complex1/logs/predict.log'
    assert w.archive_log_path == '/archive/complex1/logs/archive.log'

def test_make_dirs(tmp_path):
    w = ArchiveWorkspace(str(tmp_path), 'complex1')
    w.make_dirs()
    w.make_dirs()

    for subdir in ('msa', 'predictions', 'logs'):
        assert (tmp_path / 'complex1' / subdir).is_dir()

def test_collect_inputs_from_directory(tmp_path):
    for name in ('b.fa', 'a.fasta', 'c.faa', 'd.fastaa', 'notes.txt'):
        touch(tmp_path / name)
    touch(tmp_path / 'nested' / 'e.fasta')
    (tmp_path / 'dir.fasta').mkdir()

    units = pipeline.collect_inputs(str(tmp_path))

    assert [x.id for x in units] == ['a', 'b', 'c', 'd']
    assert units[0].fasta_path == str(tmp_path / 'a.fasta')

def test_collect_inputs_from_file(tmp_path):
    path = touch(tmp_path / 'complex1.seq')
    units = pipeline.collect_inputs(str(path))

    assert len(units) == 1
    assert units[0].id == 'complex1'

def test_collect_inputs_errors(tmp_path):
    with pytest.raises(pipeline.InputNotFound):
        pipeline.collect_inputs(str(tmp_path / 'missing'))

    touch(tmp_path / 'readme.txt')
    with pytest.raises(pipeline.NoInputsFound):
        pipeline.collect_inputs(str(tmp_path))

def test_select_newest_result(tmp_path):
    touch(tmp_path / 'complex1.a3m', mtime=1000)
    touch(tmp_path / '0.a3m', mtime=2000)
    touch(tmp_path / 'stale.a3m', mtime=500)
    touch(tmp_path / 'newer.txt', mtime=3000)

    newest = pipeline.select_newest_result(str(tmp_path))
    assert newest == str(tmp_path / '0.a3m')

def test_select_newest_result_ties(tmp_path):
    touch(tmp_path / 'a.a3m', mtime=1000)
    touch(tmp_path / 'b.a3m', mtime=1000)

    newest = pipeline.select_newest_result(str(tmp_path))
    assert newest == str(tmp_path / 'b.a3m')

def test_select_newest_result_none(tmp_path):
    assert pipeline.select_newest_result(str(tmp_path)) is None
    assert pipeline.select_newest_result(str(tmp_path / 'missing')) is None

def test_prediction_markers(tmp_path):
    assert not pipeline.has_prediction_marker(str(tmp_path / 'missing'))
    assert not pipeline.has_prediction_marker(str(tmp_path))

    touch(tmp_path / 'log.txt')
    touch(tmp_path / 'sub' / 'model.pdb')
    assert not pipeline.has_prediction_marker(str(tmp_path))

    touch(tmp_path / 'complex1_ranking_debug.json')
    assert pipeline.has_prediction_marker(str(tmp_path))

def test_is_fully_archived(tmp_path):
    w = ArchiveWorkspace(str(tmp_path), 'complex1')
    w.make_dirs()
    assert not w.is_fully_archived

    touch(tmp_path / 'complex1' / 'msa' / 'complex1.a3m', '')
    touch(tmp_path / 'complex1' / 'predictions' / 'model_1.pdb')
    assert not w.is_fully_archived

    touch(tmp_path / 'complex1' / 'msa' / 'complex1.a3m', '#A3M\n')
    assert w.is_fully_archived

    os.remove(str(tmp_path / 'complex1' / 'predictions' / 'model_1.pdb'))
    assert not w.is_fully_archived

def test_errors_have_no_stack_trace():
    error = pipeline.IntegrityMismatch('a', 'b', '1' * 32, '2' * 32)

    assert error.no_stack_trace
    assert isinstance(error, pipeline.UnitError)
    assert "'a' -> 'b'" in str(error)
    assert '1' * 32 in str(error)
