#!/usr/bin/env python3
"""
Print the resolved identity of this machine as JSON.
"""
import argparse
import os
import sys
from typing import List, Optional

from ebs_rotate.cloud.metadata import MetadataClient
from ebs_rotate.config.settings import load_config
from ebs_rotate.errors import ConfigurationError
from ebs_rotate.machine.details import MachineDetails
from ebs_rotate.scripts.common import setup_logging, write_stdout_json


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Show the EC2 identity of this machine.')
    parser.add_argument('--env-file', default=None,
                        help='Path of the .env file to load')
    parser.add_argument('--no-public-ip', action='store_true',
                        help='Skip the public IPv4 lookup')
    args = parser.parse_args(argv)

    # Diagnostics go to stderr so stdout stays valid JSON
    setup_logging(os.environ.get('LOG_LEVEL', 'INFO'), stream=sys.stderr)

    try:
        config = load_config(env_file=args.env_file, require_aws=False)
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    setup_logging(config.log_level, stream=sys.stderr)
    machine = MachineDetails(MetadataClient(), machine_type=config.machine.machine_type)
    write_stdout_json(machine.as_dict(include_public_ip=not args.no_public_ip))
    return 0


if __name__ == "__main__":
    sys.exit(main())
