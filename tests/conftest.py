#!/usr/bin/env python3

import os, stat
import pytest
from auto_multimer.settings import Settings

# Stand-ins for the external tools.  Each one records how it was called, then
# writes the kind of files the real tool would.

SEARCH_SCRIPT = """\
#!/bin/sh
echo "search $*" >> 'CALLS'
mkdir -p "$5"
printf '#A3M\\n>101\\nMKTAYIAKQRQISFVKSHFSRQ\\n' > "$5/A3M_NAME"
"""

PREDICT_SCRIPT = """\
#!/bin/sh
echo "predict $*" >> 'CALLS'
base=$(basename "$1" .a3m)
mkdir -p "$2"
echo "ATOM      1  N   MET A   1" > "$2/${base}_unrelaxed_rank_001_model_1.pdb"
echo '{"model_1": 0.87}' > "$2/${base}_ranking_debug.json"
echo "done" > "$2/${base}.done.txt"
"""

RSYNC_SCRIPT = """\
#!/bin/sh
# Mimics `rsync -a --delete SRC/ DST/`.
rm -rf "$4" && mkdir -p "$4" && cp -R "$3". "$4"
"""

FAIL_SCRIPT = """\
#!/bin/sh
echo "fail $*" >> 'CALLS'
echo "something went wrong" >&2
exit 3
"""

def write_script(path, content):
    with open(path, 'w') as file:
        file.write(content)
    os.chmod(path, os.stat(path).st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)

def write_fasta(path, sequence='MKTAYIAKQRQISFVKSHFSRQ'):
    with open(path, 'w') as file:
        file.write('>101\n{0}:\n{0}\n'.format(sequence))
    return str(path)


class FakeTools (object):

    def __init__(self, root):
        self.root = root
        self.bin_dir = root / 'bin'
        self.bin_dir.mkdir()
        self.calls_path = root / 'calls.txt'
        self.db_path = root / 'colabfold_db'
        self.db_path.mkdir()

        self.mmseqs = write_script(self.bin_dir / 'mmseqs', '#!/bin/sh\n')
        self.rsync = write_script(self.bin_dir / 'rsync', RSYNC_SCRIPT)
        self.failing = self.script('failing_tool', FAIL_SCRIPT)
        self.predict = self.script('colabfold_batch', PREDICT_SCRIPT)
        self.set_search_output('0.a3m')

    def script(self, name, template):
        content = template.replace('CALLS', str(self.calls_path))
        return write_script(self.bin_dir / name, content)

    def set_search_output(self, a3m_name):
        self.search = self.script(
                'colabfold_search', SEARCH_SCRIPT.replace('A3M_NAME', a3m_name))

    def calls(self, tool=None):
        if not self.calls_path.exists():
            return []
        with open(self.calls_path) as file:
            calls = [x.strip() for x in file]
        if tool is not None:
            calls = [x for x in calls if x.split()[0] == tool]
        return calls

    def settings(self, input_path, archive_root, local_root, **overrides):
        values = dict(
                db_path=str(self.db_path),
                mmseqs=self.mmseqs,
                search_exe=self.search,
                predict_exe=self.predict,
                rsync=self.rsync,
                threads=4,
                gpu=0,
        )
        values.update(overrides)
        return Settings.load(
                str(input_path), str(archive_root),
                overrides=dict(local_root=str(local_root), **values))


@pytest.fixture
def fake_tools(tmp_path):
    return FakeTools(tmp_path)

@pytest.fixture
def batch_dirs(tmp_path):
    inputs = tmp_path / 'complexes'
    inputs.mkdir()
    archive = tmp_path / 'archive'
    scratch = tmp_path / 'nvme'
    return inputs, archive, scratch
