#!/usr/bin/env python3

"""\
Run colabfold over a batch of protein complexes.  For each FASTA file, an MSA
is generated with colabfold_search and structures are predicted with
colabfold_batch, both on a fast local disk.  The results are then copied to a
durable archive (usually a network disk), verified, and removed from the local
disk.  Complexes that are already in the archive are skipped, so a batch that
was interrupted can simply be started again.

Usage:
    auto_multimer <command> [<args>...]
    auto_multimer --version
    auto_multimer --help

Arguments:
    <command>
        The name of the command you want to run.  You only need to specify
        enough of the name to be unique.

{command_table}

    <args>...
        The necessary arguments depend on the command being run.  For more
        information, pass the '--help' flag to the command you want to run.

Options:
    -v, --version
        Display the version of auto_multimer that's installed.
    -h, --help
        Display this help message.

Examples:
    # Run all the FASTA files in a directory
    $ auto_multimer run -i /mnt/nvme/complexes -o /home/ubuntu/archive

    # Run one FASTA file
    $ auto_multimer run -i /mnt/nvme/complexes/complex1.fasta -o /home/ubuntu/archive

    # See how far each complex has gotten
    $ auto_multimer status -i /mnt/nvme/complexes -o /home/ubuntu/archive
"""

import sys, importlib
from importlib.metadata import entry_points
import docopt
from . import __version__, scripting

def load_commands():
    """
    Return every auto_multimer command installed on this system, keyed by
    name.  Other packages can add commands by registering entry points in the
    'auto_multimer.commands' group.
    """
    return {x.name: x for x in entry_points(group='auto_multimer.commands')}

def make_command_table(entry_points):
    """
    Return a nicely formatted table of all the installed commands to
    incorporate into the help text.  The first column is the name of each
    command and the second is the first line of its help text.
    """
    if not entry_points:
        return ''

    longest_command = max(len(x) for x in entry_points)
    rows = []

    for command in sorted(entry_points):
        summary = command_summary(entry_points[command])
        row = '        {0:{1}}   {2}'.format(command, longest_command, summary)
        rows.append(row.rstrip())

    return '\n'.join(rows)

def command_summary(entry_point):
    """
    Return the first line of the docstring of the module that defines the
    given command, or an empty string if the module can't be imported.
    """
    try:
        module = importlib.import_module(entry_point.module)
    except ImportError:
        return ''

    lines = (module.__doc__ or '').strip().splitlines()
    return lines[0].strip() if lines else ''

def did_you_mean(unknown_command, entry_points):
    """
    Return the command with the name most similar to what the user typed.  This
    is used to suggest a correct command when the user types an illegal
    command.  Returns None if there are no commands at all.
    """
    if not entry_points:
        return None

    from difflib import SequenceMatcher
    similarity = lambda x: SequenceMatcher(None, x, unknown_command).ratio()
    did_you_mean = sorted(entry_points, key=similarity, reverse=True)
    return did_you_mean[0]

@scripting.catch_and_print_errors()
def main():
    entry_points = load_commands()

    # Read the command the user typed on the command line.
    command_table = make_command_table(entry_points)
    arguments = docopt.docopt(
            __doc__.format(**locals()),
            version=__version__,
            options_first=True,
    )
    command_name = arguments['<command>']

    # Find all the commands that match what the user typed.
    matching_entry_points = [
            name for name in entry_points
            if name.startswith(command_name)]

    if not entry_points:
        scripting.print_error_and_die("""\
No commands are installed.  Install auto_multimer (e.g. `pip install .`) so
that its commands can be found.""")

    # If no commands match, print out an error and suggest a command the user
    # might have been trying to type.
    elif len(matching_entry_points) == 0:
        scripting.print_error_and_die("""\
Unknown command '{0}'.  Did you mean:

    $ auto_multimer {1} {2}
""", command_name, did_you_mean(command_name, entry_points), ' '.join(arguments['<args>']))

    # If two or more commands match, print all the ambiguous commands and tell
    # the user to be more specific.
    elif len(matching_entry_points) > 1:
        message = "Command '{0}' is ambiguous.  Did you mean:\n\n"
        for matching_entry_point in sorted(matching_entry_points):
            message += "    $ auto_multimer {0} {{1}}\n".format(matching_entry_point)
        scripting.print_error_and_die(message, command_name, ' '.join(arguments['<args>']))

    # If a unique command was given, run it.
    else:
        entry_point = entry_points[matching_entry_points[0]]
        sys.argv = sys.argv[:1] + matching_entry_points + arguments['<args>']
        entry_point.load()()
