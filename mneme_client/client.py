"""
Mneme Sync Client - Main Entry Point

This is the main entry point for the mneme-sync command.
"""

import sys
import argparse


def main():
    """
    Main entry point for Mneme Sync client.

    Parses command-line arguments and runs one CLI operation:
    pull (session start), push (session end) or status.
    """
    parser = argparse.ArgumentParser(
        description='Mneme Sync - memory file synchronization client',
        epilog='Coordinator problems fall back to local memory and exit 0'
    )

    parser.add_argument('operation', choices=['pull', 'push', 'status'],
                        help='Operation to perform: pull, push, or status')

    parser.add_argument('--project',
                        help='Project id (overrides config and git detection)')

    parser.add_argument('--cwd',
                        help='Working directory used for project detection')

    args = parser.parse_args()

    from .cli import run_cli_operation
    return run_cli_operation(args.operation, args.project, args.cwd)


if __name__ == '__main__':
    sys.exit(main())
